"""
Canonical sign content for notification signatures.

Form notifications sign a sorted key=value string; XML notifications sign
the inner document itself with its sign node removed.
"""

import copy
from typing import Iterable, Mapping, Tuple

from lxml import etree

SIGN = 'sign'
DEFAULT_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


class SignContentCanonicalizer:
    """
    Builds the string a form notification's signature covers.

    The sign field and empty values are dropped, remaining keys are sorted
    ascending and joined as key=value pairs. Subclass and override
    ``order`` or ``separator`` for gateways that canonicalize differently.
    """

    separator = '&'
    pair_format = '{key}={value}'
    excluded = frozenset([SIGN])

    def order(self, items: Iterable[Tuple[str, str]]) -> Iterable[Tuple[str, str]]:
        return sorted(items, key=lambda item: item[0])

    def canonicalize(self, parameters: Mapping[str, str]) -> str:
        items = [
            (key, value) for key, value in parameters.items()
            if key not in self.excluded and value
        ]
        return self.separator.join(
            self.pair_format.format(key=key, value=value)
            for key, value in self.order(items)
        )


class XmlCanonicalizer:
    """
    Builds the string an XML notification's signature covers.

    The sign element is removed from the document root and the document is
    serialized again. Re-serialization always emits the default declaration,
    so the header of the document as received is substituted back in.
    """

    declaration = DEFAULT_XML_DECLARATION

    def canonicalize(self, root: etree._Element, header: str = '') -> str:
        root = copy.deepcopy(root)
        for sign_node in root.findall(SIGN):
            root.remove(sign_node)

        content = self.declaration + etree.tostring(root, encoding='unicode')
        if header:
            content = content.replace(self.declaration, header, 1)
        return content
