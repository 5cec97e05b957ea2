"""
Solo Parent Backend: Document Registry
=======================================

What:  The closed set of supporting-document types and the rule that decides
       which of them a case must submit.
How:   `DocumentType` is a str Enum; each member knows its table, display
       name and ORM model. Services dispatch through the enum, never through
       table names taken from a request.

Required documents by civil status:

    base (every case)   psa, itr, med_cert
    single              + cenomar
    married / divorced  + marriage
    widowed             + marriage, death_cert
    unknown / missing   base only
"""

from enum import Enum
from typing import Dict, Optional, Tuple, Type

from soloparent.exceptions import ValidationError
from soloparent.models.document import (
    BarangayCertDocument,
    CenomarDocument,
    DeathCertDocument,
    DocumentMixin,
    ItrDocument,
    MarriageDocument,
    MedCertDocument,
    PsaDocument,
)


class DocumentType(str, Enum):
    PSA = "psa"
    ITR = "itr"
    MED_CERT = "med_cert"
    MARRIAGE = "marriage"
    CENOMAR = "cenomar"
    DEATH_CERT = "death_cert"
    BARANGAY_CERT = "barangay_cert"

    @property
    def model(self) -> Type[DocumentMixin]:
        return _MODELS[self]

    @property
    def table(self) -> str:
        return self.model.__tablename__

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> "DocumentType":
        """
        Resolve a document code ("psa") or table name ("psa_documents").

        Raises:
            ValidationError: the value names no registered document type.
        """
        key = (value or "").strip().lower()
        for member in cls:
            if key in (member.value, member.table):
                return member
        raise ValidationError(f"Invalid document type: {value}", field="documentType")


_MODELS: Dict[DocumentType, Type[DocumentMixin]] = {
    DocumentType.PSA: PsaDocument,
    DocumentType.ITR: ItrDocument,
    DocumentType.MED_CERT: MedCertDocument,
    DocumentType.MARRIAGE: MarriageDocument,
    DocumentType.CENOMAR: CenomarDocument,
    DocumentType.DEATH_CERT: DeathCertDocument,
    DocumentType.BARANGAY_CERT: BarangayCertDocument,
}

_DISPLAY_NAMES: Dict[DocumentType, str] = {
    DocumentType.PSA: "PSA Birth Certificate",
    DocumentType.ITR: "Income Tax Return",
    DocumentType.MED_CERT: "Medical Certificate",
    DocumentType.MARRIAGE: "Marriage Certificate",
    DocumentType.CENOMAR: "CENOMAR",
    DocumentType.DEATH_CERT: "Death Certificate",
    DocumentType.BARANGAY_CERT: "Barangay Certificate",
}

BASE_DOCUMENTS: Tuple[DocumentType, ...] = (
    DocumentType.PSA,
    DocumentType.ITR,
    DocumentType.MED_CERT,
)

_EXTRA_BY_CIVIL_STATUS: Dict[str, Tuple[DocumentType, ...]] = {
    "single": (DocumentType.CENOMAR,),
    "married": (DocumentType.MARRIAGE,),
    "divorced": (DocumentType.MARRIAGE,),
    "widowed": (DocumentType.MARRIAGE, DocumentType.DEATH_CERT),
}


def required_documents(civil_status: Optional[str]) -> Tuple[DocumentType, ...]:
    """Ordered document types a case with this civil status must have Approved."""
    key = (civil_status or "").strip().lower()
    return BASE_DOCUMENTS + _EXTRA_BY_CIVIL_STATUS.get(key, ())
