"""Field tag parsing.

A tag is a comma-separated string attached to a record field:

    password: str = tag("password,required,min=6,transform=hash_pass,omitempty")

The first slot names the field in the store ("-" ignores the field, an empty
slot keeps the attribute name). Every following token is one of:
- omitempty / omitempty_create / omitempty_update / omitempty_validate
- transform=<name>         transformation rule
- <name>=<param>           validation rule with a parameter
- <name>                   validation rule without a parameter

Rule tokens keep their declared order; omission tokens are positionless.
"""

from dataclasses import dataclass

from docforge.validation.errors import TagSyntaxError
from docforge.validation.types import Directive, DirectiveKind, Method

IGNORE_TOKEN = "-"
TRANSFORM_PREFIX = "transform="

OMIT_TOKENS: dict[str, Method | None] = {
    "omitempty": None,
    "omitempty_create": Method.CREATE,
    "omitempty_update": Method.UPDATE,
    "omitempty_validate": Method.VALIDATE,
}


@dataclass(frozen=True)
class ParsedTag:
    """Result of parsing one field tag.

    Attributes:
        store_name: Name used in the store and in field paths
        renamed: True if the first slot named the field explicitly
        ignore: True if the field is excluded entirely
        omit_scopes: Methods under which a zero value is omitted (None = always)
        rules: Validation and transformation directives in declared order
    """

    store_name: str
    renamed: bool = False
    ignore: bool = False
    omit_scopes: tuple[Method | None, ...] = ()
    rules: tuple[Directive, ...] = ()

    @property
    def directives(self) -> tuple[Directive, ...]:
        """All directives, structural ones first."""
        structural: list[Directive] = []
        if self.renamed:
            structural.append(
                Directive(DirectiveKind.NAME, self.store_name, name=self.store_name)
            )
        if self.ignore:
            structural.append(Directive(DirectiveKind.IGNORE, IGNORE_TOKEN))
        for scope in self.omit_scopes:
            token = "omitempty" if scope is None else f"omitempty_{scope.value}"
            structural.append(Directive(DirectiveKind.OMIT_EMPTY, token, scope=scope))
        return tuple(structural) + self.rules


def parse_tag(tag: str | None, source_name: str) -> ParsedTag:
    """Parse a field tag into a ParsedTag.

    Args:
        tag: The raw tag string (None or "" for an untagged field)
        source_name: The attribute name, used as the default store name

    Returns:
        The parsed tag

    Raises:
        TagSyntaxError: If the tag is malformed
    """
    if not tag or not tag.strip():
        return ParsedTag(store_name=source_name)

    tokens = [t.strip() for t in tag.split(",")]
    name_slot, rest = tokens[0], tokens[1:]

    if name_slot == IGNORE_TOKEN:
        return ParsedTag(store_name=source_name, ignore=True)
    if "=" in name_slot:
        raise TagSyntaxError(
            tag, source_name, f"first slot must be a field name, got {name_slot!r}"
        )
    store_name = name_slot or source_name

    omit_scopes: list[Method | None] = []
    rules: list[Directive] = []

    for token in rest:
        if not token:
            continue
        if token == IGNORE_TOKEN:
            raise TagSyntaxError(tag, source_name, "'-' is only valid as the first slot")
        if token in OMIT_TOKENS:
            scope = OMIT_TOKENS[token]
            if scope not in omit_scopes:
                omit_scopes.append(scope)
            continue
        rules.append(_parse_rule_token(token, tag, source_name))

    return ParsedTag(
        store_name=store_name,
        renamed=bool(name_slot),
        omit_scopes=tuple(omit_scopes),
        rules=tuple(rules),
    )


def _parse_rule_token(token: str, tag: str, source_name: str) -> Directive:
    if token.startswith(TRANSFORM_PREFIX):
        name = token[len(TRANSFORM_PREFIX):].strip()
        if not name:
            raise TagSyntaxError(tag, source_name, "transform= requires a rule name")
        return Directive(DirectiveKind.TRANSFORMATION, token, name=name)

    name, sep, param = token.partition("=")
    name = name.strip()
    if not name:
        raise TagSyntaxError(tag, source_name, f"missing rule name in {token!r}")
    return Directive(
        DirectiveKind.VALIDATION,
        token,
        name=name,
        param=param.strip() if sep else None,
    )
