"""Identifier attributes that make ``#fragment`` reference URIs resolvable."""
import logging
from collections import OrderedDict
from typing import Dict, List

from lxml import etree

from .errors import AmbiguousReference, InvalidReference

logger = logging.getLogger(__name__)


class IdMap:
    """Elements of one document indexed by their identifier attribute value.

    Attributes are matched by local name, so ``Id`` and ``wsu:Id`` both
    qualify. Values are indexed in document order and never rewritten;
    duplicate values are kept and only reported when referenced.
    """

    def __init__(self, root: etree._Element, attribute: str = 'Id'):
        self.attribute = attribute
        self._elements: Dict[str, List[etree._Element]] = OrderedDict()
        for el in root.iter(etree.Element):
            for name, value in el.attrib.items():
                if etree.QName(name).localname == attribute:
                    bucket = self._elements.setdefault(value, [])
                    if not bucket or bucket[-1] is not el:
                        bucket.append(el)
        logger.debug('Marked %d identifiers on attribute %s', len(self._elements), attribute)

    def __contains__(self, value: str) -> bool:
        return value in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def resolve(self, uri: str) -> etree._Element:
        if not uri.startswith('#') or len(uri) == 1:
            raise InvalidReference(uri, reason=f'Reference URI {uri!r} is not a same-document fragment')
        matches = self._elements.get(uri[1:], [])
        if len(matches) > 1:
            raise AmbiguousReference(uri, len(matches))
        if not matches:
            raise InvalidReference(uri, 0)
        return matches[0]


def mark_ids(root: etree._Element, attribute: str = 'Id') -> IdMap:
    return IdMap(root, attribute)
