"""Dutch monthly payroll: gross-to-net calculation, run ledger and SEPA export."""

__version__ = "1.0.0"
