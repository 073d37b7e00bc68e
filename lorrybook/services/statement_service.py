# lorrybook/services/statement_service.py
from __future__ import annotations
import csv
import io
import logging
import os
import re
from pathlib import Path
from shutil import which
from typing import Any, Dict, List, Optional, Union

import pdfkit

from lorrybook.models.ledger import CompanyLedgerStatement, LedgerStatement
from lorrybook.services.ledger_service import format_balance, format_inr
from lorrybook.settings import EXPORTS_DIR, TEMPLATES_DIR, company_info, load_settings

logger = logging.getLogger(__name__)

Statement = Union[LedgerStatement, CompanyLedgerStatement]

CLIENT_COLUMNS = ["Date", "Particulars", "Debit", "Credit", "Balance"]
COMPANY_COLUMNS = ["Date", "Party", "Particulars", "Income", "Expense"]


def _slug(text: str) -> str:
    text = (text or "").strip()
    text = re.sub(r'[\\/:*?"<>|\n\r\t]', "_", text)
    text = re.sub(r"\s+", "_", text)
    return text or "export"


def _amount(paise: int) -> str:
    return format_inr(paise) if paise else "-"


# ---------- PDF helpers ----------
def _clean_path(p: str) -> str:
    p = (p or "").strip().strip('"').strip("'")
    return os.path.normpath(p) if p else ""


def _find_wkhtmltopdf(settings: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """
    Localise wkhtmltopdf :
    - variable d'env WKHTMLTOPDF
    - settings.json -> pdf.wkhtmltopdf_path ou wkhtmltopdf_path
    - PATH
    """
    val = os.environ.get("WKHTMLTOPDF")
    if val and Path(_clean_path(val)).is_file():
        return _clean_path(val)

    s = settings if settings is not None else load_settings()
    pdf_conf = s.get("pdf", {}) if isinstance(s.get("pdf"), dict) else {}
    wk = pdf_conf.get("wkhtmltopdf_path") or s.get("wkhtmltopdf_path")
    if wk and Path(_clean_path(wk)).is_file():
        return _clean_path(wk)

    found = which("wkhtmltopdf")
    return _clean_path(found) if found else None


def _render_pdf_with_weasyprint(html: str, out_path: Path, base_url: Optional[str]) -> None:
    """Fallback WeasyPrint (si wkhtmltopdf absent)."""
    try:
        from weasyprint import HTML
    except ImportError as e:
        raise RuntimeError(
            "No wkhtmltopdf found and WeasyPrint is not installed. "
            "Install the 'pdf' extra or configure wkhtmltopdf."
        ) from e
    HTML(string=html, base_url=base_url).write_pdf(str(out_path))


# ---------- Service ----------
class StatementService:
    """
    Mise en forme des relevés pour les collaborateurs d'affichage/export :
    tableau générique {columns, rows}, CSV, HTML (Jinja2) et PDF.
    """

    def __init__(self, exports_dir: Optional[Union[str, Path]] = None, settings: Optional[Dict[str, Any]] = None):
        self.exports_dir = Path(exports_dir) if exports_dir else EXPORTS_DIR / "ledgers"
        self.settings = settings if settings is not None else load_settings()

    # ----------- tableau générique -----------
    def to_table(self, statement: Statement) -> Dict[str, List[Any]]:
        if isinstance(statement, LedgerStatement):
            rows = [
                [tx.date.strftime("%d/%m/%Y"), tx.particulars, _amount(tx.debit), _amount(tx.credit),
                 format_balance(tx.balance)]
                for tx in statement.transactions
            ]
            return {"columns": list(CLIENT_COLUMNS), "rows": rows}

        rows = [
            [tx.date.strftime("%d/%m/%Y"), tx.party, tx.particulars,
             _amount(tx.amount) if tx.type == "income" else "-",
             _amount(tx.amount) if tx.type == "expense" else "-"]
            for tx in statement.transactions
        ]
        return {"columns": list(COMPANY_COLUMNS), "rows": rows}

    def summary(self, statement: Statement) -> Dict[str, str]:
        if isinstance(statement, LedgerStatement):
            return {
                "Total Billed (Debit)": format_inr(statement.total_debit),
                "Total Paid (Credit)": format_inr(statement.total_credit),
                "Opening Balance": format_balance(statement.opening_balance),
                "Closing Balance": format_balance(statement.closing_balance),
            }
        return {
            "Total Income": format_inr(statement.total_income),
            "Total Expense": format_inr(statement.total_expense),
            "Net": format_balance(statement.net),
        }

    # ----------- CSV -----------
    def to_csv(self, statement: Statement) -> str:
        table = self.to_table(statement)
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(table["columns"])
        writer.writerows(table["rows"])
        return buf.getvalue()

    def export_csv(self, statement: Statement, title: str) -> Path:
        self.exports_dir.mkdir(parents=True, exist_ok=True)
        out_path = self.exports_dir / f"Ledger-{_slug(title)}.csv"
        out_path.write_text(self.to_csv(statement), encoding="utf-8")
        return out_path

    # ----------- HTML / PDF -----------
    def render_html(self, statement: Statement, title: str) -> str:
        from jinja2 import Environment, FileSystemLoader, select_autoescape

        env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
        )
        tpl = env.get_template("ledger.html")
        return tpl.render(
            title=title,
            company=company_info(self.settings),
            table=self.to_table(statement),
            summary=self.summary(statement),
        )

    def export_pdf(self, statement: Statement, title: str) -> Path:
        """wkhtmltopdf (pdfkit) en priorité, sinon WeasyPrint."""
        html = self.render_html(statement, title)
        self.exports_dir.mkdir(parents=True, exist_ok=True)
        out_path = self.exports_dir / f"Ledger-{_slug(title)}.pdf"

        wkhtml = _find_wkhtmltopdf(self.settings)
        if wkhtml:
            try:
                config = pdfkit.configuration(wkhtmltopdf=wkhtml)
                options = {"enable-local-file-access": None, "quiet": "", "encoding": "UTF-8"}
                pdfkit.from_string(html, str(out_path), options=options, configuration=config)
                return out_path
            except OSError as e:
                logger.warning("wkhtmltopdf failed (%s), falling back to WeasyPrint", e)

        _render_pdf_with_weasyprint(html, out_path, base_url=str(TEMPLATES_DIR.resolve()))
        return out_path
