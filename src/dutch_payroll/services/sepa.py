"""SEPA credit transfer initiation (ISO 20022 ``pain.001.001.03``).

One document holds a single payment information block (the company account
as debtor) with one ``CdtTrfTxInf`` per payee. IBANs are checked before any
XML is produced.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from xml.dom import minidom

from dutch_payroll.calculators.money import cents_to_euros
from dutch_payroll.calculators.periods import format_timestamp
from dutch_payroll.calculators.tax_configuration import utcnow
from dutch_payroll.calculators.types import PayrollResult
from dutch_payroll.errors import IntegrityError, ValidationError
from dutch_payroll.services.iban import normalize_iban, validate_iban

logger = logging.getLogger(__name__)

PAIN_001_NAMESPACE = "urn:iso:std:iso:20022:tech:xsd:pain.001.001.03"
CONTENT_TYPE = "application/xml; charset=utf-8"


@dataclass(frozen=True)
class Debtor:
    """The paying company account."""

    name: str
    iban: str
    bic: str | None = None


@dataclass(frozen=True)
class SepaPayment:
    end_to_end_id: str
    name: str
    iban: str
    amount_cents: int
    remittance: str
    bic: str | None = None

    @property
    def amount(self) -> Decimal:
        return cents_to_euros(self.amount_cents)


def payments_from_results(results: Iterable[PayrollResult], period: str) -> list[SepaPayment]:
    """Salary payments for every result with a positive net amount."""
    payments = []
    for result in results:
        if result.amounts.net_cents <= 0:
            continue
        employee = result.employee
        remittance = (
            f"Salary & final payout {period}" if result.employment.is_leaver else f"Salary {period}"
        )
        payments.append(
            SepaPayment(
                end_to_end_id=f"SAL-{employee.id}-{period}",
                name=employee.full_name,
                iban=employee.iban,
                bic=employee.bic,
                amount_cents=result.amounts.net_cents,
                remittance=remittance,
            )
        )
    return payments


def _text(parent: ET.Element, tag: str, value: str) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = value
    return element


class SepaFileBuilder:
    """Builds ``pain.001.001.03`` documents for one debtor account."""

    def __init__(self, debtor: Debtor, currency: str = "EUR"):
        self.debtor = debtor
        self.currency = currency

    def validate(self, payments: Sequence[SepaPayment]) -> None:
        """Check the debtor and every payee before building.

        Raises:
            ValidationError: If there are no payments or an amount is not positive.
            IntegrityError: On the first IBAN that fails its checksum or layout.
        """
        if not payments:
            raise ValidationError("At least one payment is required", field="payments")
        if not validate_iban(self.debtor.iban):
            raise IntegrityError(f"Invalid company IBAN for {self.debtor.name}", party=self.debtor.name)
        for payment in payments:
            if not validate_iban(payment.iban):
                raise IntegrityError(f"Invalid employee IBAN for {payment.name}", party=payment.name)
            if payment.amount_cents <= 0:
                raise ValidationError(
                    f"Payment amount for {payment.name} must be positive", field="amount"
                )

    def build(
        self,
        payments: Sequence[SepaPayment],
        created_at: datetime | None = None,
        execution_date: date | None = None,
    ) -> str:
        """Return the pretty-printed XML document.

        Output is identical for identical payments and ``created_at``.
        """
        self.validate(payments)

        created_at = created_at or utcnow()
        timestamp = format_timestamp(created_at)
        execution = execution_date or created_at.date()
        control_sum = sum((p.amount for p in payments), Decimal("0.00"))

        root = ET.Element("Document", {"xmlns": PAIN_001_NAMESPACE})
        initiation = ET.SubElement(root, "CstmrCdtTrfInitn")

        header = ET.SubElement(initiation, "GrpHdr")
        _text(header, "MsgId", f"MSG-{timestamp}")
        _text(header, "CreDtTm", timestamp)
        _text(header, "NbOfTxs", str(len(payments)))
        _text(header, "CtrlSum", f"{control_sum:.2f}")
        _text(ET.SubElement(header, "InitgPty"), "Nm", self.debtor.name)

        info = ET.SubElement(initiation, "PmtInf")
        _text(info, "PmtInfId", f"PMT-{timestamp}")
        _text(info, "PmtMtd", "TRF")
        _text(info, "NbOfTxs", str(len(payments)))
        _text(info, "CtrlSum", f"{control_sum:.2f}")
        _text(info, "ReqdExctnDt", execution.isoformat())
        _text(ET.SubElement(info, "Dbtr"), "Nm", self.debtor.name)
        _text(
            ET.SubElement(ET.SubElement(info, "DbtrAcct"), "Id"),
            "IBAN",
            normalize_iban(self.debtor.iban),
        )
        debtor_agent = ET.SubElement(ET.SubElement(info, "DbtrAgt"), "FinInstnId")
        if self.debtor.bic:
            _text(debtor_agent, "BIC", self.debtor.bic)
        else:
            # DbtrAgt is mandatory; SEPA allows an unnamed agent
            _text(ET.SubElement(debtor_agent, "Othr"), "Id", "NOTPROVIDED")
        _text(info, "ChrgBr", "SLEV")

        for payment in payments:
            tx = ET.SubElement(info, "CdtTrfTxInf")
            _text(ET.SubElement(tx, "PmtId"), "EndToEndId", payment.end_to_end_id)
            amount = ET.SubElement(ET.SubElement(tx, "Amt"), "InstdAmt", {"Ccy": self.currency})
            amount.text = f"{payment.amount:.2f}"
            if payment.bic:
                _text(ET.SubElement(ET.SubElement(tx, "CdtrAgt"), "FinInstnId"), "BIC", payment.bic)
            _text(ET.SubElement(tx, "Cdtr"), "Nm", payment.name)
            _text(ET.SubElement(ET.SubElement(tx, "CdtrAcct"), "Id"), "IBAN", normalize_iban(payment.iban))
            _text(ET.SubElement(tx, "RmtInf"), "Ustrd", payment.remittance)

        logger.info(
            "Built pain.001 with %d transaction(s), control sum %s %s",
            len(payments),
            f"{control_sum:.2f}",
            self.currency,
        )
        return self._prettify_xml(root)

    def _prettify_xml(self, elem: ET.Element) -> str:
        """Return a pretty-printed XML string with a UTF-8 declaration."""
        rough_string = ET.tostring(elem, encoding="unicode")
        reparsed = minidom.parseString(rough_string)
        return reparsed.toprettyxml(indent="  ", encoding="UTF-8").decode("utf-8")


def build_pain001(
    debtor: Debtor,
    payments: Sequence[SepaPayment],
    created_at: datetime | None = None,
    execution_date: date | None = None,
    currency: str = "EUR",
) -> str:
    return SepaFileBuilder(debtor, currency=currency).build(payments, created_at, execution_date)
