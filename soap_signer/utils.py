import copy
from typing import Union

from lxml import etree

from .errors import MalformedInputXml


def load_xml(xml_input: Union[str, bytes], remove_blank_text: bool = True) -> etree._ElementTree:
    if isinstance(xml_input, str):
        xml_input = xml_input.encode('utf-8')
        encoding = 'utf-8'
    else:
        encoding = None
    parser = etree.XMLParser(remove_blank_text=remove_blank_text, resolve_entities=False,
                             no_network=True, encoding=encoding)
    try:
        root = etree.fromstring(xml_input, parser)
    except etree.XMLSyntaxError as e:
        raise MalformedInputXml(str(e)) from e
    return root.getroottree()


def copy_siblings(source: etree._Element, target: etree._Element) -> None:
    """Copy comments and processing instructions around ``source`` to ``target``."""
    for sibling in reversed(list(source.itersiblings(preceding=True))):
        target.addprevious(copy.copy(sibling))
    for sibling in reversed(list(source.itersiblings())):
        target.addnext(copy.copy(sibling))


def dump_xml(root: etree._Element, xml_declaration: bool = True) -> str:
    """Serialize the document of ``root``, including nodes outside the root element."""
    return etree.tostring(root.getroottree(), encoding='utf-8', xml_declaration=xml_declaration).decode('utf-8')
