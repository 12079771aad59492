import customtkinter as ctk
from models.generation_report import STATUS_FAILED, GenerationReport
from utils.constants import BANNER_COLORS


def summarize_report(report: GenerationReport) -> tuple[str, str]:
    """(message, color) describing a generation pass for the banner."""
    generated = report.generated_count
    if report.failed_count:
        failed = [d for d in report.details if d.status == STATUS_FAILED]
        names = ", ".join(sorted({d.description or str(d.definition_id) for d in failed}))
        message = (
            f"{generated} recurring transaction{'s' if generated != 1 else ''} added; "
            f"could not record: {names}."
        )
        return message, BANNER_COLORS["failed"]
    if generated:
        message = (
            f"{generated} recurring transaction{'s' if generated != 1 else ''} "
            f"added through {report.horizon:%b %d, %Y}."
        )
        return message, BANNER_COLORS["generated"]
    return f"Nothing due through {report.horizon:%b %d, %Y}.", BANNER_COLORS["idle"]


class AlertBanner(ctk.CTkFrame):
    """A dismissible colored banner for non-blocking notifications."""

    def __init__(self, master, message: str, color: str = BANNER_COLORS["generated"],
                 action_text: str | None = None, action_cmd=None, **kwargs):
        super().__init__(master, fg_color=color, corner_radius=6, **kwargs)
        self.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            self, text=message, text_color="white",
            anchor="w", padx=10, pady=6
        ).grid(row=0, column=0, sticky="ew")

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=0, column=1, padx=(0, 4))

        if action_text and action_cmd:
            ctk.CTkButton(
                btn_frame, text=action_text, width=60, height=24,
                fg_color="transparent", border_width=1, border_color="white",
                text_color="white", command=action_cmd,
            ).pack(side="left", padx=2)

        ctk.CTkButton(
            btn_frame, text="✕", width=28, height=24,
            fg_color="transparent", text_color="white",
            command=self.destroy,
        ).pack(side="left")

    @classmethod
    def for_report(cls, master, report: GenerationReport, **kwargs) -> "AlertBanner":
        message, color = summarize_report(report)
        return cls(master, message=message, color=color, **kwargs)
