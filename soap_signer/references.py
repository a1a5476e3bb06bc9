"""Reference descriptors, one per URI to be signed."""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .errors import InvalidReference
from .ids import IdMap

logger = logging.getLogger(__name__)

ENVELOPED = 'http://www.w3.org/2000/09/xmldsig#enveloped-signature'
WHOLE_DOCUMENT = ''


@dataclass(frozen=True)
class Reference:
    uri: str
    digest_method: str
    transforms: Tuple[str, ...]

    @property
    def whole_document(self) -> bool:
        return self.uri == WHOLE_DOCUMENT


class ReferenceBuilder:
    def __init__(self, digest_method: str, c14n_method: str):
        self.digest_method = digest_method
        self.transforms = (ENVELOPED, c14n_method)

    def build(self, uris: Iterable[str], ids: IdMap) -> List[Reference]:
        """Check every URI against ``ids`` and return references in input order."""
        uris = list(uris)
        if not uris:
            raise InvalidReference(WHOLE_DOCUMENT, reason='At least one reference URI is required')

        references = []
        for uri in uris:
            if uri != WHOLE_DOCUMENT:
                ids.resolve(uri)
            references.append(Reference(uri, self.digest_method, self.transforms))
        logger.debug('Built %d references: %s', len(references), [r.uri for r in references])
        return references
