from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional

from ..cli_logger import logger

TRIM_CHARS = " \t'\""
SEPARATOR = ","
QUOTE = "'"
ESCAPE = "\\"

# Lowercased option names that map onto MSBuild PackageReference metadata.
KNOWN_METADATA = {
    "isfsharpdesigntimeprovider": "IsFSharpDesignTimeProvider",
    "privateassets": "PrivateAssets",
    "includeassets": "IncludeAssets",
    "excludeassets": "ExcludeAssets",
    "aliases": "Aliases",
    "nowarn": "NoWarn",
}


class ParsedOption(NamedTuple):
    name: Optional[str]
    value: Optional[str]


def _none_if_empty(text):
    return text if text else None


def split_option(option: str) -> ParsedOption:
    """Split one comma group into a (name, value) pair on the first '='."""
    pos = option.find("=")
    if pos <= 0:
        name = None
    else:
        name = _none_if_empty(option[:pos].strip(TRIM_CHARS).lower())

    if pos < 0:
        value_text = option
    else:
        value_text = option[pos + 1:]
    return ParsedOption(name, _none_if_empty(value_text.strip(TRIM_CHARS)))


def split_groups(text: str) -> List[str]:
    """Split text on commas that are not inside a single-quoted span.

    A quote preceded by a backslash is a literal character and does not
    open or close a span. Unbalanced quotes simply swallow the rest of the
    text into the current group.
    """
    groups = []
    if not text:
        return groups

    inside_quotes = False
    start = 0
    for i, char in enumerate(text):
        if char == SEPARATOR and not inside_quotes:
            groups.append(text[start:i])
            start = i + 1
        elif char == QUOTE and not (i > 0 and text[i - 1] == ESCAPE):
            inside_quotes = not inside_quotes
    groups.append(text[start:])
    return groups


class ParsedOptions:
    """Lazy, restartable view of the options in a package reference spec."""

    def __init__(self, text: Optional[str]):
        self.text = text or ""

    def __iter__(self) -> Iterator[ParsedOption]:
        for group in split_groups(self.text):
            yield split_option(group)

    def __len__(self):
        return len(split_groups(self.text))

    def __repr__(self):
        return f"ParsedOptions({self.text!r})"


def parse_options(text: Optional[str]) -> ParsedOptions:
    return ParsedOptions(text)


@dataclass
class PackageDeclaration:
    include: str
    version: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class PackageRequest:
    declarations: List[PackageDeclaration] = field(default_factory=list)
    restore_sources: List[str] = field(default_factory=list)
    binary_logging: bool = False


def group_options(options: Iterable[ParsedOption]) -> PackageRequest:
    """Fold parsed options into package declarations.

    ``include=X`` or a bare value starts a package, ``version=V`` or a bare
    value following a package id sets its version, ``restoresources`` and
    ``bl`` apply to the whole request and anything else becomes metadata on
    the current package.
    """
    request = PackageRequest()
    current = None

    for name, value in options:
        if name is None:
            if value is None:
                continue
            if current is None or current.version is not None:
                current = PackageDeclaration(include=value)
                request.declarations.append(current)
            else:
                current.version = value
        elif name == "include":
            if value is None:
                logger.warning("Ignoring 'include' option without a package id.")
                continue
            current = PackageDeclaration(include=value)
            request.declarations.append(current)
        elif name == "version":
            if current is None:
                logger.warning(f"Ignoring version '{value}': no package has been named yet.")
            else:
                current.version = value
        elif name in ("restoresources", "restoresource"):
            if value:
                request.restore_sources.append(value)
        elif name == "bl":
            request.binary_logging = value is None or value.lower() in ("true", "1", "yes", "on")
        elif current is None:
            logger.warning(f"Ignoring option '{name}': no package has been named yet.")
        else:
            current.metadata[KNOWN_METADATA.get(name, name)] = value or "true"

    return request


def parse_package_request(text: Optional[str]) -> PackageRequest:
    return group_options(parse_options(text))
