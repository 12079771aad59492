import logging
import os
import sys
import customtkinter as ctk

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.category_dao import CategoryDAO
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from services.recurring_service import RecurringService
from ui.app_window import AppWindow
from utils.app_config import get_db_folder, get_log_level
from utils.constants import LOG_FORMAT
from utils.date_helpers import today


def main():
    # ── Bootstrap: logging and DB folder from pre-DB config ──────────────────
    logging.basicConfig(level=get_log_level(), format=LOG_FORMAT)
    db_folder = get_db_folder()

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager.open(db_folder=db_folder)

    # ── DAOs ─────────────────────────────────────────────────────────────────
    category_dao = CategoryDAO(db)
    recurring_dao = RecurringDAO(db)
    tx_dao = TransactionDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    recurring_svc = RecurringService(
        recurring_dao, tx_dao, category_dao,
        deactivate_exhausted=db.get_bool_setting("deactivate_exhausted"),
    )

    # ── Generate due recurring transactions ──────────────────────────────────
    startup_report = None
    if db.get_bool_setting("generate_on_startup", default=True):
        startup_report = recurring_svc.generate(today())

    # ── Appearance ───────────────────────────────────────────────────────────
    ctk.set_appearance_mode(db.get_setting("appearance_mode", "system"))
    ctk.set_default_color_theme("blue")

    # ── Launch UI ────────────────────────────────────────────────────────────
    app = AppWindow(
        recurring_service=recurring_svc,
        category_dao=category_dao,
        startup_report=startup_report,
        date_format=db.get_setting("date_format", "MM/DD/YYYY"),
        currency_symbol=db.get_setting("currency_symbol", "$"),
    )

    def on_close():
        db.close()
        app.destroy()

    app.protocol("WM_DELETE_WINDOW", on_close)
    app.mainloop()


if __name__ == "__main__":
    main()
