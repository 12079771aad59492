import customtkinter as ctk
from database.category_dao import CategoryDAO
from models.recurrence_rule import Frequency
from models.recurring_definition import RecurringDefinition
from services.recurring_service import RecurringService
from ui.components.date_picker import DatePickerWidget
from utils.constants import DAYS_OF_WEEK, FREQUENCIES
from utils.date_helpers import day_of_week, today


class RecurringForm(ctk.CTkToplevel):
    """Add or edit a recurring definition."""

    def __init__(
        self,
        master,
        recurring_service: RecurringService,
        category_dao: CategoryDAO,
        definition: RecurringDefinition | None = None,
        date_format: str = "MM/DD/YYYY",
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._svc = recurring_service
        self._cat_dao = category_dao
        self._definition = definition
        self._date_format = date_format
        self.saved = False

        rule = definition.rule if definition else None
        start = rule.start_date if rule else today()

        self.title("Edit Recurring Transaction" if definition else "New Recurring Transaction")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        r = 0

        self._add_label("Description:", r)
        self._desc_var = ctk.StringVar(value=definition.description if definition else "")
        ctk.CTkEntry(self, textvariable=self._desc_var, width=220).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        self._add_label("Type:", r)
        self._type_var = ctk.StringVar(value=definition.type if definition else "expense")
        type_frame = ctk.CTkFrame(self, fg_color="transparent")
        type_frame.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        for t in ("income", "expense"):
            ctk.CTkRadioButton(
                type_frame, text=t.title(),
                variable=self._type_var, value=t,
                command=self._on_type_change,
            ).pack(side="left", padx=4)
        r += 1

        self._add_label("Amount:", r)
        self._amount_var = ctk.StringVar(value=f"{definition.amount:.2f}" if definition else "")
        ctk.CTkEntry(self, textvariable=self._amount_var, width=220).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        self._add_label("Category:", r)
        self._cats = self._cat_dao.get_for_transaction_type(self._type_var.get())
        cat_names = [""] + [c.name for c in self._cats]
        self._cat_var = ctk.StringVar(value=definition.category_name if definition else "")
        self._cat_combo = ctk.CTkComboBox(
            self, values=cat_names, variable=self._cat_var,
            width=220, state="readonly"
        )
        self._cat_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._add_label("Frequency:", r)
        self._freq_var = ctk.StringVar(value=rule.frequency.value if rule else "monthly")
        ctk.CTkComboBox(
            self, values=FREQUENCIES, variable=self._freq_var,
            width=220, state="readonly",
            command=self._on_freq_change,
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._add_label("Every:", r)
        self._interval_var = ctk.StringVar(value=str(rule.interval) if rule else "1")
        ctk.CTkEntry(self, textvariable=self._interval_var, width=60).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="w"
        )
        r += 1

        # Anchor day field (depends on frequency)
        self._day_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._day_frame.grid(row=r, column=0, columnspan=2, padx=16, pady=2, sticky="ew")
        r += 1
        dow = rule.anchor_day_of_week if rule and rule.anchor_day_of_week is not None else day_of_week(start)
        dom = rule.anchor_day_of_month if rule and rule.anchor_day_of_month else start.day
        self._dow_var = ctk.StringVar(value=DAYS_OF_WEEK[dow])
        self._dom_var = ctk.StringVar(value=str(dom))
        self._refresh_day_fields()

        self._add_label("Start Date:", r)
        self._start_picker = DatePickerWidget(self, initial_date=start, date_format=date_format)
        self._start_picker.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        r += 1

        self._add_label("End Date:", r)
        self._end_picker = DatePickerWidget(
            self, initial_date=rule.end_date if rule else None,
            date_format=date_format, allow_empty=True,
        )
        self._end_picker.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        ctk.CTkLabel(self, text="(optional)", text_color="gray60", font=ctk.CTkFont(size=11)).grid(
            row=r, column=1, padx=(160, 0), pady=4, sticky="w"
        )
        r += 1

        self._add_label("Notes:", r)
        self._notes_var = ctk.StringVar(value=definition.notes if definition else "")
        ctk.CTkEntry(self, textvariable=self._notes_var, width=220).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var,
            text_color="#F44336", wraplength=280, anchor="w"
        ).grid(row=r, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")
        r += 1

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=r, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")
        ctk.CTkButton(
            btn_frame, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        if definition:
            ctk.CTkButton(
                btn_frame, text="Delete", width=80,
                fg_color="#F44336", hover_color="#D32F2F",
                command=self._on_delete,
            ).pack(side="left", padx=8)
        ctk.CTkButton(btn_frame, text="Save", width=90, command=self._on_save).pack(side="right")

        self.transient(master)
        self.grab_set()
        self._center()

    def _add_label(self, text, row):
        ctk.CTkLabel(self, text=text).grid(
            row=row, column=0, padx=(16, 8), pady=4, sticky="e"
        )

    def _on_type_change(self):
        self._cats = self._cat_dao.get_for_transaction_type(self._type_var.get())
        cat_names = [""] + [c.name for c in self._cats]
        self._cat_combo.configure(values=cat_names)
        if self._cat_var.get() not in cat_names:
            self._cat_var.set("")
            self._cat_combo.set("")

    def _on_freq_change(self, value=None):
        self._refresh_day_fields()

    def _refresh_day_fields(self):
        for w in self._day_frame.winfo_children():
            w.destroy()

        frequency = Frequency(self._freq_var.get())
        if frequency.uses_day_of_week:
            ctk.CTkLabel(self._day_frame, text="Day of Week:").grid(
                row=0, column=0, padx=(0, 8), sticky="e"
            )
            ctk.CTkComboBox(
                self._day_frame, values=DAYS_OF_WEEK,
                variable=self._dow_var, width=120, state="readonly"
            ).grid(row=0, column=1, sticky="w")
        elif frequency.uses_day_of_month:
            ctk.CTkLabel(self._day_frame, text="Day of Month:").grid(
                row=0, column=0, padx=(0, 8), sticky="e"
            )
            ctk.CTkComboBox(
                self._day_frame, values=[str(i) for i in range(1, 32)],
                variable=self._dom_var, width=80, state="readonly",
            ).grid(row=0, column=1, sticky="w")
            ctk.CTkLabel(
                self._day_frame, text="(short months use their last day)",
                text_color="gray60", font=ctk.CTkFont(size=11),
            ).grid(row=0, column=2, padx=(8, 0), sticky="w")

    def _on_save(self):
        if not self._start_picker.is_valid():
            self._error_var.set("Invalid start date.")
            return
        if not self._end_picker.is_valid():
            self._error_var.set("Invalid end date.")
            return
        try:
            interval = int(self._interval_var.get())
        except ValueError:
            self._error_var.set("Interval must be a whole number.")
            return

        frequency = Frequency(self._freq_var.get())
        day_of_week_value = None
        day_of_month_value = None
        if frequency.uses_day_of_week:
            day_of_week_value = DAYS_OF_WEEK.index(self._dow_var.get())
        elif frequency.uses_day_of_month:
            day_of_month_value = int(self._dom_var.get())

        cat = next((c for c in self._cats if c.name == self._cat_var.get()), None)
        values = dict(
            description=self._desc_var.get(),
            type_=self._type_var.get(),
            amount=self._amount_var.get(),
            category_id=cat.id if cat else None,
            frequency=frequency,
            start_date=self._start_picker.get_date(),
            interval=interval,
            day_of_week=day_of_week_value,
            day_of_month=day_of_month_value,
            end_date=self._end_picker.get_date(),
            notes=self._notes_var.get(),
        )
        # InvalidRule is a ValueError, so one handler covers rule and field errors.
        try:
            if self._definition:
                self._svc.update(self._definition.id, **values)
            else:
                self._svc.create(**values)
        except ValueError as e:
            self._error_var.set(str(e))
            return
        self.saved = True
        self.destroy()

    def _on_delete(self):
        self._svc.delete(self._definition.id)
        self.saved = True
        self.destroy()

    def _center(self):
        self.update_idletasks()
        mw = self.master.winfo_x() + self.master.winfo_width() // 2
        mh = self.master.winfo_y() + self.master.winfo_height() // 2
        w, h = self.winfo_reqwidth(), self.winfo_reqheight()
        self.geometry(f"+{mw - w//2}+{mh - h//2}")
