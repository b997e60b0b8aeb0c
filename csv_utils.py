import csv
import re
from io import StringIO
from typing import Iterable

from schemas import Entry

SHEET_COLUMNS = ["ID", "Data", "Descricao", "Categoria", "Pagamento", "Valor"]


def sanitize_csv_value(value: str) -> str:
    """
    Sanitize CSV values to prevent formula injection by prefixing dangerous patterns with tab.
    """
    if not value or value.strip() == "":
        return ""

    value = value.strip()

    formula_triggers = ("=", "+", "-", "@", "\t", "\r")

    if value.startswith(formula_triggers):
        return "\t" + value

    dangerous_patterns = [
        r"^cmd\s*",
        r"^powershell\s*",
        r"^bash\s*",
        r"^sh\s*",
        r"^http[s]?://",
    ]

    for pattern in dangerous_patterns:
        if re.match(pattern, value, re.IGNORECASE):
            return "\t" + value

    return value


def format_sheet_date(entry: Entry) -> str:
    return entry.date.strftime("%d/%m/%Y")


def sheet_rows(entries: Iterable[Entry]) -> list[dict[str, object]]:
    ordered = sorted(entries, key=lambda e: e.date)
    return [
        {
            "ID": e.id,
            "Data": format_sheet_date(e),
            "Descricao": e.description,
            "Categoria": e.category.value,
            "Pagamento": e.payment_method.value,
            "Valor": e.amount,
        }
        for e in ordered
    ]


def export_entries(entries: Iterable[Entry]) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(SHEET_COLUMNS)
    for row in sheet_rows(entries):
        writer.writerow(
            [
                row["ID"],
                row["Data"],
                sanitize_csv_value(str(row["Descricao"])),
                row["Categoria"],
                row["Pagamento"],
                f"{row['Valor']:.2f}",
            ]
        )
    return output.getvalue()
