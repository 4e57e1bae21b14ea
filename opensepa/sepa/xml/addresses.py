"""Postal address post-pass over a serialized SEPA document.

Addresses are injected after serialization: the document is parsed back,
each party element (``Cdtr``/``Dbtr``) is located and a ``PstlAdr`` block is
inserted right after its ``Nm``. Lookup is namespace-aware and falls back to
local names, so documents written with or without a default namespace work.

The pass fails open: a document that cannot be parsed or navigated is
returned unchanged and a warning is logged.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from lxml import etree

from ...exceptions import XMLProcessingError
from ...utils.logging import get_logger
from ..domain.models import PostalAddress
from .namespaces import namespace_of, qname

logger = get_logger(__name__)

# Child order of PstlAdr (PostalAddress6)
ADDRESS_ELEMENTS: tuple[tuple[str, str], ...] = (
    ("StrtNm", "street"),
    ("PstCd", "postal_code"),
    ("TwnNm", "city"),
    ("Ctry", "country"),
)


@dataclass(frozen=True)
class AddressTarget:
    """Where to put one address.

    Attributes:
        container: Local name of the block holding the party (``PmtInf``, ``DrctDbtTxInf``...)
        index: Zero-based occurrence of ``container`` in document order
        party: Local name of the party element (``Cdtr`` or ``Dbtr``)
        address: Address to render
    """

    container: str
    index: int
    party: str
    address: PostalAddress


def inject_postal_addresses(
    xml: str,
    targets: Sequence[AddressTarget],
    *,
    pretty_print: bool = True,
) -> str:
    """Insert ``PstlAdr`` blocks for every non-empty address in ``targets``.

    Returns:
        The rewritten document, or ``xml`` unchanged when there is nothing to
        inject or the document cannot be processed
    """
    targets = [target for target in targets if not target.address.is_empty]
    if not targets:
        return xml

    try:
        parser = etree.XMLParser(remove_blank_text=True, resolve_entities=False)
        root = etree.fromstring(xml.encode("utf-8"), parser)
        for target in targets:
            party = _find_party(root, target)
            _insert_address(party, target.address)
    except (etree.XMLSyntaxError, XMLProcessingError) as e:
        logger.warning(
            "postal_address_injection_failed",
            error=str(e),
            error_type=type(e).__name__,
            targets=len(targets),
        )
        return xml

    logger.debug("postal_addresses_injected", count=len(targets))
    return etree.tostring(
        root,
        pretty_print=pretty_print,
        xml_declaration=True,
        encoding="UTF-8",
    ).decode("utf-8")


def build_postal_address(parent: etree._Element, address: PostalAddress) -> etree._Element:
    """Create a detached ``PstlAdr`` element in ``parent``'s namespace."""
    namespace = namespace_of(parent)
    postal = etree.Element(qname(namespace, "PstlAdr"))
    for tag, attribute in ADDRESS_ELEMENTS:
        value = getattr(address, attribute)
        if not value:
            continue
        try:
            etree.SubElement(postal, qname(namespace, tag)).text = value
        except ValueError as e:
            raise XMLProcessingError(
                f"Address value not allowed in XML: {tag}", element=tag, original_error=e
            ) from e
    return postal


def _insert_address(party: etree._Element, address: PostalAddress) -> None:
    postal = build_postal_address(party, address)
    name = _find_child(party, "Nm")
    if name is None:
        party.append(postal)
    else:
        name.addnext(postal)


def _find_party(root: etree._Element, target: AddressTarget) -> etree._Element:
    containers = _find_all(root, target.container)
    if target.index >= len(containers):
        raise XMLProcessingError(
            f"No {target.container} element at position {target.index}",
            element=target.container,
        )

    party = _find_child(containers[target.index], target.party)
    if party is None:
        raise XMLProcessingError(
            f"{target.container} has no {target.party} element",
            element=target.party,
        )
    return party


def _find_all(root: etree._Element, local: str) -> list[etree._Element]:
    found = list(root.iter(qname(namespace_of(root), local)))
    if not found:
        found = root.xpath(f"//*[local-name()='{local}']")
    return found


def _find_child(parent: etree._Element, local: str) -> etree._Element | None:
    child = parent.find(qname(namespace_of(parent), local))
    if child is None:
        matches = parent.xpath(f"./*[local-name()='{local}']")
        child = matches[0] if matches else None
    return child
