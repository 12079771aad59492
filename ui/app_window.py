import customtkinter as ctk
from database.category_dao import CategoryDAO
from models.generation_report import GenerationReport
from services.recurring_service import RecurringService
from ui.components.alert_banner import AlertBanner
from ui.tabs.recurring_tab import RecurringTab
from utils.constants import APP_NAME, APP_WIDTH, APP_HEIGHT


class AppWindow(ctk.CTk):
    def __init__(
        self,
        recurring_service: RecurringService,
        category_dao: CategoryDAO,
        startup_report: GenerationReport | None = None,
        date_format: str = "MM/DD/YYYY",
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._recurring_svc = recurring_service
        self._cat_dao = category_dao

        self.title(APP_NAME)
        self.minsize(APP_WIDTH, APP_HEIGHT)
        self.geometry(f"{APP_WIDTH}x{APP_HEIGHT}")

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._banner_frame = ctk.CTkFrame(self, fg_color="transparent", height=0)
        self._banner_frame.grid(row=0, column=0, sticky="ew", padx=8)

        self._recurring_tab = RecurringTab(
            self,
            recurring_service=self._recurring_svc,
            category_dao=self._cat_dao,
            on_generated=self.show_generation_banner,
            date_format=date_format,
            currency_symbol=currency_symbol,
        )
        self._recurring_tab.grid(row=1, column=0, sticky="nsew")

        # Only announce startup generation when something actually happened
        if startup_report and (startup_report.generated_count or startup_report.failed_count):
            self.after(300, lambda: self.show_generation_banner(startup_report))

    def show_generation_banner(self, report: GenerationReport):
        for w in self._banner_frame.winfo_children():
            w.destroy()
        AlertBanner.for_report(self._banner_frame, report).pack(fill="x", pady=2)
