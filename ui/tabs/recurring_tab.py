import logging
import customtkinter as ctk
from database.category_dao import CategoryDAO
from models.errors import DefinitionNotFound
from models.recurring_definition import RecurringDefinition
from services.recurring_service import RecurringService
from ui.components.date_picker import DatePickerWidget
from ui.components.recurring_form import RecurringForm
from utils.currency import format_currency
from utils.date_helpers import format_display_date, today

logger = logging.getLogger(__name__)


def describe_schedule(definition: RecurringDefinition) -> str:
    """'Monthly', 'Every 2 weeks', 'Every 3 months' ..."""
    rule = definition.rule
    if rule.interval == 1:
        return rule.frequency.label
    unit = {
        "daily": "days", "weekly": "weeks", "biweekly": "fortnights",
        "monthly": "months", "quarterly": "quarters", "yearly": "years",
    }[rule.frequency.value]
    return f"Every {rule.interval} {unit}"


class RecurringTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        recurring_service: RecurringService,
        category_dao: CategoryDAO,
        on_generated,
        date_format: str = "MM/DD/YYYY",
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._svc = recurring_service
        self._cat_dao = category_dao
        self._on_generated = on_generated
        self._date_format = date_format
        self._symbol = currency_symbol

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._build_toolbar()
        self._build_list()
        self._load()

    def refresh(self):
        self._load()

    def _build_toolbar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))
        ctk.CTkLabel(
            bar, text="Recurring Transactions",
            font=ctk.CTkFont(size=14, weight="bold"),
        ).pack(side="left", padx=12, pady=8)
        ctk.CTkButton(bar, text="+ Add", width=80, command=self._open_add).pack(
            side="right", padx=8, pady=6
        )
        ctk.CTkButton(bar, text="Generate", width=90, command=self._generate_all).pack(
            side="right", padx=(4, 8), pady=6
        )
        self._horizon_picker = DatePickerWidget(bar, initial_date=today(), date_format=self._date_format)
        self._horizon_picker.pack(side="right", padx=4, pady=6)
        ctk.CTkLabel(bar, text="Through:").pack(side="right", padx=(12, 4))

    def _build_list(self):
        self._scroll = ctk.CTkScrollableFrame(self)
        self._scroll.grid(row=1, column=0, sticky="nsew", padx=8, pady=8)
        self._scroll.grid_columnconfigure(0, weight=1)

    def _load(self):
        for w in self._scroll.winfo_children():
            w.destroy()

        definitions = self._svc.get_all()
        if not definitions:
            ctk.CTkLabel(
                self._scroll,
                text="No recurring transactions yet. Click '+ Add' to create one.",
                text_color="gray60",
            ).grid(row=0, column=0, pady=40)
            return

        hdr = ctk.CTkFrame(self._scroll, fg_color=("gray82", "gray22"), corner_radius=0)
        hdr.grid(row=0, column=0, sticky="ew", pady=(0, 2))
        for i, (col, w) in enumerate([
            ("Description", 170), ("Amount", 90), ("Category", 110),
            ("Schedule", 110), ("Next Due", 100), ("Generated Through", 120),
            ("Status", 70), ("Actions", 150),
        ]):
            ctk.CTkLabel(
                hdr, text=col, width=w, anchor="w",
                font=ctk.CTkFont(weight="bold"),
            ).grid(row=0, column=i, padx=4, pady=4)

        for idx, definition in enumerate(definitions):
            self._add_row(idx + 1, definition)

    def _add_row(self, idx, definition: RecurringDefinition):
        bg = ("gray92", "gray17") if idx % 2 == 0 else ("gray88", "gray21")
        row = ctk.CTkFrame(self._scroll, fg_color=bg, corner_radius=4)
        row.grid(row=idx, column=0, sticky="ew", pady=1, padx=2)

        # Same calculation the generator uses, so the preview cannot disagree.
        next_due = self._svc.next_due_date(definition)
        data = [
            (definition.description, 170),
            (format_currency(definition.amount, self._symbol, definition.type), 90),
            (definition.category_name or "—", 110),
            (describe_schedule(definition), 110),
            (format_display_date(next_due, self._date_format) if next_due else "Ended", 100),
            (format_display_date(definition.watermark, self._date_format) or "—", 120),
        ]
        for i, (text, width) in enumerate(data):
            ctk.CTkLabel(row, text=text, width=width, anchor="w").grid(
                row=0, column=i, padx=4, pady=4
            )

        ctk.CTkLabel(
            row, text="Active" if definition.active else "Paused", width=70, anchor="w",
            text_color="#4CAF50" if definition.active else "gray60",
        ).grid(row=0, column=6, padx=4)

        acts = ctk.CTkFrame(row, fg_color="transparent")
        acts.grid(row=0, column=7, padx=(4, 6))
        ctk.CTkButton(
            acts, text="Edit", width=40, height=24,
            command=lambda d=definition: self._open_edit(d),
        ).pack(side="left", padx=2)
        ctk.CTkButton(
            acts, text="Pause" if definition.active else "Resume", width=52, height=24,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=lambda d=definition: self._toggle_active(d),
        ).pack(side="left", padx=2)
        ctk.CTkButton(
            acts, text="Run", width=40, height=24,
            state="normal" if definition.active else "disabled",
            command=lambda d=definition: self._generate_one(d),
        ).pack(side="left", padx=2)

    def _horizon(self):
        if not self._horizon_picker.is_valid():
            return today()
        return self._horizon_picker.get_date()

    def _generate_all(self):
        report = self._svc.generate(self._horizon())
        self._on_generated(report)
        self._load()

    def _generate_one(self, definition: RecurringDefinition):
        try:
            report = self._svc.generate(self._horizon(), definition_id=definition.id)
        except DefinitionNotFound as e:
            logger.warning("%s", e)
            self._load()
            return
        self._on_generated(report)
        self._load()

    def _open_add(self):
        form = RecurringForm(
            self.winfo_toplevel(), self._svc, self._cat_dao,
            date_format=self._date_format,
        )
        self.wait_window(form)
        if form.saved:
            self._load()

    def _open_edit(self, definition: RecurringDefinition):
        form = RecurringForm(
            self.winfo_toplevel(), self._svc, self._cat_dao,
            definition=definition,
            date_format=self._date_format,
        )
        self.wait_window(form)
        if form.saved:
            self._load()

    def _toggle_active(self, definition: RecurringDefinition):
        try:
            self._svc.toggle_active(definition.id)
        except DefinitionNotFound as e:
            logger.warning("%s", e)
        self._load()
