from datetime import date
from decimal import Decimal

from ledger.domain import TransactionStatus, TransactionType
from ledger.parsers import (
    CSV_DEFAULT_DESCRIPTION,
    OFX_DEFAULT_DESCRIPTION,
    Candidate,
    infer_type,
    parse_amount,
    parse_csv,
    parse_date,
    parse_ofx,
    resolve_columns,
    to_transactions,
)

OFX = """OFXHEADER:100
DATA:OFXSGML
<OFX>
<BANKMSGSRSV1><STMTTRNRS><STMTRS>
<BANKTRANLIST>
<STMTTRN>
<TRNTYPE>DEBIT
<DTPOSTED>20240305120000[-3:BRT]
<TRNAMT>-50.25
<MEMO>Padaria São João
</STMTTRN>
<STMTTRN>
<TRNTYPE>CREDIT
<DTPOSTED>20240306
<TRNAMT>1500,00
<NAME>Salário
</STMTTRN>
<STMTTRN>
<DTPOSTED>20240307</DTPOSTED>
<TRNAMT>-9.90</TRNAMT>
</STMTTRN>
<STMTTRN>
<DTPOSTED>20240308
<TRNAMT>0.00
<MEMO>Zero
</STMTTRN>
<STMTTRN>
<DTPOSTED>garbage
<TRNAMT>-1.00
</STMTTRN>
</BANKTRANLIST>
</STMTRS></STMTTRNRS></BANKMSGSRSV1>
</OFX>
"""


def test_parse_ofx():
    result = parse_ofx(OFX)
    assert result == [
        Candidate("Padaria São João", Decimal("50.25"), TransactionType.EXPENSE, date(2024, 3, 5)),
        Candidate("Salário", Decimal("1500.00"), TransactionType.INCOME, date(2024, 3, 6)),
        Candidate(OFX_DEFAULT_DESCRIPTION, Decimal("9.90"), TransactionType.EXPENSE, date(2024, 3, 7)),
    ]


def test_parse_ofx_without_transactions():
    assert parse_ofx("") == []
    assert parse_ofx("<OFX></OFX>") == []


def test_parse_csv_brazilian_export():
    text = (
        "Data;Descrição;Valor;Tipo\n"
        "05/03/2024;Mercado;1.234,56;Despesa\n"
        "06/03/2024;Salário;5.000,00;Receita\n"
        "07/03/2024;Vazio;0,00;Despesa\n"
        "99/99/2024;Data ruim;10,00;Despesa\n"
    )
    assert parse_csv(text) == [
        Candidate("Mercado", Decimal("1234.56"), TransactionType.EXPENSE, date(2024, 3, 5)),
        Candidate("Salário", Decimal("5000.00"), TransactionType.INCOME, date(2024, 3, 6)),
    ]


def test_parse_csv_other_separator_and_missing_columns():
    text = "description,amount\nCoffee,4.50\n,12\n"
    today = date(2024, 5, 1)
    assert parse_csv(text, separator=",", today=today) == [
        Candidate("Coffee", Decimal("4.50"), TransactionType.EXPENSE, today),
        Candidate(CSV_DEFAULT_DESCRIPTION, Decimal("12"), TransactionType.EXPENSE, today),
    ]


def test_resolve_columns_by_normalized_alias():
    columns = resolve_columns(["Histórico", "VALOR", "other"])
    assert columns == {"date": None, "description": "Histórico", "amount": "VALOR", "type": None}


def test_parse_amount_formats():
    assert parse_amount("1.234,56") == Decimal("1234.56")
    assert parse_amount("1234,56") == Decimal("1234.56")
    assert parse_amount("1234.56") == Decimal("1234.56")
    assert parse_amount("R$ -89,90") == Decimal("89.90")
    assert parse_amount("abc") is None
    assert parse_amount("") is None


def test_parse_date():
    today = date(2024, 1, 1)
    assert parse_date("05/03/2024", today) == date(2024, 3, 5)
    assert parse_date("2024-03-05", today) == date(2024, 3, 5)
    assert parse_date("", today) == today
    assert parse_date("31/02/2024", today) is None


def test_infer_type():
    assert infer_type("Crédito") is TransactionType.INCOME
    assert infer_type("income") is TransactionType.INCOME
    assert infer_type("Débito") is TransactionType.EXPENSE
    assert infer_type("") is TransactionType.EXPENSE


def test_to_transactions_attaches_account():
    candidates = [Candidate("Coffee", Decimal("4.50"), TransactionType.EXPENSE, date(2024, 3, 5))]
    (t,) = to_transactions(candidates, "a1", id_factory=lambda: "x1")
    assert (t.id, t.account_id, t.status) == ("x1", "a1", TransactionStatus.COMPLETED)
    assert (t.description, t.amount, t.date) == ("Coffee", Decimal("4.50"), date(2024, 3, 5))
