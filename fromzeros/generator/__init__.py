"""fromzeros implementation generator."""

from .derive import TRAIT_PATH as TRAIT_PATH
from .derive import Analysis as Analysis
from .derive import analyze as analyze
from .derive import derive as derive
from .derive import derive_all as derive_all
from .errors import GenerationError as GenerationError
from .errors import LayoutUndefined as LayoutUndefined
from .errors import NoZeroDiscriminant as NoZeroDiscriminant
from .errors import ParseError as ParseError
from .errors import UnmetFieldConstraint as UnmetFieldConstraint
from .errors import UnsupportedKind as UnsupportedKind
from .layout import RepresentationKind as RepresentationKind
from .parser import parse as parse
from .parser import parse_json as parse_json
from .types import *
