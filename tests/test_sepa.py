"""Tests for IBAN checks and pain.001 generation."""

import xml.etree.ElementTree as ET
from datetime import date, datetime, timezone

import pytest

from dutch_payroll.errors import IntegrityError, ValidationError
from dutch_payroll.services.iban import normalize_iban, validate_iban
from dutch_payroll.services.sepa import (
    PAIN_001_NAMESPACE,
    Debtor,
    SepaFileBuilder,
    SepaPayment,
    build_pain001,
    payments_from_results,
)

from .conftest import COMPANY_IBAN, VALID_IBANS, make_employee

NS = {"p": PAIN_001_NAMESPACE}
CREATED_AT = datetime(2025, 1, 24, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def builder() -> SepaFileBuilder:
    return SepaFileBuilder(Debtor(name="Company BV", iban=COMPANY_IBAN, bic="ABNANL2A"))


def payment(**overrides) -> SepaPayment:
    values = dict(
        end_to_end_id="SAL-E-10001-2025-01",
        name="Ava Jansen",
        iban=VALID_IBANS["DE"],
        bic="COBADEFFXXX",
        amount_cents=325_050,
        remittance="Salary 2025-01",
    )
    values.update(overrides)
    return SepaPayment(**values)


def parse(xml: str) -> ET.Element:
    return ET.fromstring(xml.encode("utf-8"))


class TestIban:
    """Test IBAN normalization and checksum."""

    @pytest.mark.parametrize("iban", [COMPANY_IBAN, *VALID_IBANS.values()])
    def test_valid(self, iban):
        assert validate_iban(iban)

    def test_spaces_and_case_ignored(self):
        assert validate_iban("nl91 abna 0417 1643 00")
        assert normalize_iban("nl91 abna 0417 1643 00") == COMPANY_IBAN

    @pytest.mark.parametrize(
        "iban",
        [
            "NL00INVALID00000000",
            "NL92ABNA0417164300",  # checksum off by one
            "NL91ABNA041716430",  # too short
            "XX91ABNA0417164300",  # unknown country
            "NL6500001234567890",  # checksum holds but the bank code is not letters
            "",
        ],
    )
    def test_invalid(self, iban):
        assert not validate_iban(iban)


class TestSepaFileBuilder:
    """Test document structure and validation."""

    def test_group_header_and_payment_info(self, builder):
        payments = [payment(), payment(end_to_end_id="SAL-E-10002-2025-01", amount_cents=100_001)]
        root = parse(builder.build(payments, created_at=CREATED_AT))

        assert root.tag == f"{{{PAIN_001_NAMESPACE}}}Document"
        header = root.find("p:CstmrCdtTrfInitn/p:GrpHdr", NS)
        assert header.findtext("p:MsgId", namespaces=NS) == "MSG-2025-01-24T08:00:00.000Z"
        assert header.findtext("p:CreDtTm", namespaces=NS) == "2025-01-24T08:00:00.000Z"
        assert header.findtext("p:NbOfTxs", namespaces=NS) == "2"
        assert header.findtext("p:CtrlSum", namespaces=NS) == "4250.51"
        assert header.findtext("p:InitgPty/p:Nm", namespaces=NS) == "Company BV"

        info = root.find("p:CstmrCdtTrfInitn/p:PmtInf", NS)
        assert info.findtext("p:PmtInfId", namespaces=NS) == "PMT-2025-01-24T08:00:00.000Z"
        assert info.findtext("p:PmtMtd", namespaces=NS) == "TRF"
        assert info.findtext("p:NbOfTxs", namespaces=NS) == "2"
        assert info.findtext("p:ReqdExctnDt", namespaces=NS) == "2025-01-24"
        assert info.findtext("p:DbtrAcct/p:Id/p:IBAN", namespaces=NS) == COMPANY_IBAN
        assert info.findtext("p:DbtrAgt/p:FinInstnId/p:BIC", namespaces=NS) == "ABNANL2A"
        assert info.findtext("p:ChrgBr", namespaces=NS) == "SLEV"
        assert len(info.findall("p:CdtTrfTxInf", NS)) == 2

    def test_transaction(self, builder):
        root = parse(builder.build([payment()], created_at=CREATED_AT))
        tx = root.find("p:CstmrCdtTrfInitn/p:PmtInf/p:CdtTrfTxInf", NS)
        assert tx.findtext("p:PmtId/p:EndToEndId", namespaces=NS) == "SAL-E-10001-2025-01"
        amount = tx.find("p:Amt/p:InstdAmt", NS)
        assert amount.text == "3250.50"
        assert amount.get("Ccy") == "EUR"
        assert tx.findtext("p:CdtrAgt/p:FinInstnId/p:BIC", namespaces=NS) == "COBADEFFXXX"
        assert tx.findtext("p:Cdtr/p:Nm", namespaces=NS) == "Ava Jansen"
        assert tx.findtext("p:CdtrAcct/p:Id/p:IBAN", namespaces=NS) == VALID_IBANS["DE"]
        assert tx.findtext("p:RmtInf/p:Ustrd", namespaces=NS) == "Salary 2025-01"

    def test_execution_date_override(self, builder):
        root = parse(builder.build([payment()], created_at=CREATED_AT, execution_date=date(2025, 1, 27)))
        assert root.findtext("p:CstmrCdtTrfInitn/p:PmtInf/p:ReqdExctnDt", namespaces=NS) == "2025-01-27"

    def test_declaration_and_indentation(self, builder):
        xml = builder.build([payment()], created_at=CREATED_AT)
        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "\n  <CstmrCdtTrfInitn>" in xml

    def test_deterministic_for_fixed_timestamp(self, builder):
        payments = [payment()]
        assert builder.build(payments, created_at=CREATED_AT) == builder.build(payments, created_at=CREATED_AT)

    def test_special_characters_escaped(self, builder):
        xml = builder.build(
            [payment(name="Jansen & Zn <BV>", remittance="Salary & final payout 2025-01")],
            created_at=CREATED_AT,
        )
        assert "Jansen &amp; Zn &lt;BV&gt;" in xml
        tx = parse(xml).find("p:CstmrCdtTrfInitn/p:PmtInf/p:CdtTrfTxInf", NS)
        assert tx.findtext("p:Cdtr/p:Nm", namespaces=NS) == "Jansen & Zn <BV>"

    def test_missing_payee_bic_omits_creditor_agent(self, builder):
        root = parse(builder.build([payment(bic=None)], created_at=CREATED_AT))
        tx = root.find("p:CstmrCdtTrfInitn/p:PmtInf/p:CdtTrfTxInf", NS)
        assert tx.find("p:CdtrAgt", NS) is None
        assert "<BIC></BIC>" not in builder.build([payment(bic="")], created_at=CREATED_AT)

    def test_missing_company_bic_uses_unnamed_debtor_agent(self):
        builder = SepaFileBuilder(Debtor(name="Company BV", iban=COMPANY_IBAN))
        info = parse(builder.build([payment()], created_at=CREATED_AT)).find("p:CstmrCdtTrfInitn/p:PmtInf", NS)
        assert info.find("p:DbtrAgt/p:FinInstnId/p:BIC", NS) is None
        assert info.findtext("p:DbtrAgt/p:FinInstnId/p:Othr/p:Id", namespaces=NS) == "NOTPROVIDED"

    def test_payee_iban_normalized(self, builder):
        root = parse(builder.build([payment(iban="de89 3704 0044 0532 0130 00")], created_at=CREATED_AT))
        tx = root.find("p:CstmrCdtTrfInitn/p:PmtInf/p:CdtTrfTxInf", NS)
        assert tx.findtext("p:CdtrAcct/p:Id/p:IBAN", namespaces=NS) == VALID_IBANS["DE"]

    def test_invalid_payee_iban_names_payee(self, builder):
        payments = [payment(), payment(name="Noah de Vries", iban="NL00INVALID00000000")]
        with pytest.raises(IntegrityError) as exc_info:
            builder.build(payments, created_at=CREATED_AT)
        assert exc_info.value.party == "Noah de Vries"
        assert "Noah de Vries" in str(exc_info.value)

    def test_malformed_account_number_names_payee(self, builder):
        with pytest.raises(IntegrityError) as exc_info:
            builder.build([payment(name="Bram Visser", iban="NL6500001234567890")], created_at=CREATED_AT)
        assert exc_info.value.party == "Bram Visser"

    def test_invalid_company_iban(self):
        builder = SepaFileBuilder(Debtor(name="Company BV", iban="NL00INVALID00000000"))
        with pytest.raises(IntegrityError) as exc_info:
            builder.build([payment()], created_at=CREATED_AT)
        assert "company" in str(exc_info.value).lower()

    def test_empty_payment_list(self, builder):
        with pytest.raises(ValidationError):
            builder.build([], created_at=CREATED_AT)

    def test_non_positive_amount(self, builder):
        with pytest.raises(ValidationError):
            builder.build([payment(amount_cents=0)], created_at=CREATED_AT)

    def test_module_level_helper(self):
        xml = build_pain001(
            Debtor(name="Company BV", iban=COMPANY_IBAN), [payment()], created_at=CREATED_AT
        )
        assert parse(xml).findtext("p:CstmrCdtTrfInitn/p:GrpHdr/p:NbOfTxs", namespaces=NS) == "1"


class TestPaymentsFromResults:
    """Test turning payroll results into payments."""

    def test_salary_remittance(self, calculator):
        result = calculator.calculate(make_employee(), "2025-01")
        [p] = payments_from_results([result], "2025-01")
        assert p.end_to_end_id == "SAL-E-10001-2025-01"
        assert p.remittance == "Salary 2025-01"
        assert p.amount_cents == result.amounts.net_cents
        assert p.iban == VALID_IBANS["DE"]

    def test_leaver_remittance(self, calculator):
        leaver = make_employee(end_date=date(2025, 1, 20))
        [p] = payments_from_results([calculator.calculate(leaver, "2025-01")], "2025-01")
        assert p.remittance == "Salary & final payout 2025-01"

    def test_non_positive_net_skipped(self, calculator):
        gone = make_employee(end_date=date(2024, 6, 30), holiday_allowance_eligible=False)
        assert payments_from_results([calculator.calculate(gone, "2025-01")], "2025-01") == []
