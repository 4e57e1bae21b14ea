"""ISO 20022 namespaces and qualified-name helpers."""

from lxml import etree

PAIN_001 = "urn:iso:std:iso:20022:tech:xsd:pain.001.001.03"
PAIN_008 = "urn:iso:std:iso:20022:tech:xsd:pain.008.001.02"


def qname(namespace: str | None, local: str) -> str:
    """Clark notation ``{namespace}local``, or the bare name without a namespace."""
    if not namespace:
        return local
    return f"{{{namespace}}}{local}"


def namespace_of(element: etree._Element) -> str | None:
    return etree.QName(element).namespace
