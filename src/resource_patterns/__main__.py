"""CLI utilities for resource-patterns.

Commands compile and exercise single patterns, print the JSON Schema of
schema documents, and check two schema versions for compatibility.
"""

from pathlib import Path

from click import ClickException, argument, echo, get_current_context, group, option
from click import Path as PathParam
from yaml import safe_dump

from resource_patterns.core import CompatibilityValidator, NameMatcher, PatternCompiler, SchemaLoader
from resource_patterns.errors import ResourcePatternError
from resource_patterns.jsonschema import SchemaGenerator
from resource_patterns.settings import RegistrySettings

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


@group(help='Command-line utilities for resource name patterns.')
def cli() -> None:
    """Root CLI group for resource-patterns tools."""
    return None


@cli.command(
    name='schema',
    help='Print the JSON Schema of schema documents to standard output.',
)
def print_schema() -> None:
    """Generate and print the JSON Schema."""
    echo(SchemaGenerator.make_schema())


@cli.command(
    name='compile',
    help='Compile a pattern and print its segments as YAML.',
)
@argument('pattern')
def compile_command(pattern: str) -> None:
    """Compile and describe a pattern.

    Args:
        pattern: Pattern string.
    """
    try:
        compiled = PatternCompiler.compile(pattern)
    except ResourcePatternError as error:
        raise ClickException(str(error)) from error

    echo(safe_dump({
        'pattern': compiled.pattern,
        'wildcard': compiled.wildcard,
        'variables': list(compiled.variables),
        'collection_ids': list(compiled.collection_ids),
        'segments': [
            segment.model_dump(mode='json')
            for segment in compiled.segments
        ],
    }, sort_keys=False), nl=False)


@cli.command(
    name='match',
    help='Match a resource name against a pattern and print the binding.',
)
@option(
    '-w', '--wildcard-variable',
    default=None,
    help='Variable binding the whole name when PATTERN is `*`.',
)
@argument('pattern')
@argument('name')
def match_command(pattern: str, name: str, wildcard_variable: str | None) -> None:
    """Match a name against a pattern.

    Args:
        pattern: Pattern string.
        name: Resource name.
        wildcard_variable: Optional wildcard binding key.
    """
    try:
        binding = NameMatcher.match(
            PatternCompiler.compile(pattern),
            name,
            wildcard_variable=wildcard_variable,
        )
    except ResourcePatternError as error:
        raise ClickException(str(error)) from error

    echo(safe_dump(binding, sort_keys=False), nl=False)


@cli.command(
    name='render',
    help='Render a resource name from KEY=VALUE variable assignments.',
)
@option(
    '-w', '--wildcard-variable',
    default=None,
    help='Variable holding the whole name when PATTERN is `*`.',
)
@argument('pattern')
@argument('assignments', nargs=-1, metavar='KEY=VALUE...')
def render_command(pattern: str, assignments: tuple[str, ...],
                   wildcard_variable: str | None) -> None:
    """Render a name from variable assignments.

    Args:
        pattern: Pattern string.
        assignments: Variable assignments.
        wildcard_variable: Optional wildcard binding key.
    """
    binding: dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition('=')
        if not sep or not key:
            raise ClickException(f'Invalid assignment {assignment!r}, expected KEY=VALUE')
        binding[key] = value

    try:
        echo(NameMatcher.render(
            PatternCompiler.compile(pattern),
            binding,
            wildcard_variable=wildcard_variable,
        ))
    except ResourcePatternError as error:
        raise ClickException(str(error)) from error


@cli.command(
    name='check',
    help=(
        'Check that the NEW schema document is backward compatible '
        'with the OLD one. Exits with status 1 on violations.'
    ),
)
@option(
    '--warn',
    is_flag=True,
    default=False,
    help='Report violations as warnings and exit with status 0.',
)
@option(
    '--require-history',
    is_flag=True,
    default=False,
    help='Require ORIGINALLY_SINGLE_PATTERN when a resource gains patterns.',
)
@argument('old', type=InputFilepath)
@argument('new', type=InputFilepath)
def check_command(old: Path, new: Path, warn: bool, require_history: bool) -> None:
    """Check schema evolution.

    Args:
        old: Previous schema file.
        new: Next schema file.
        warn: Whether violations only produce warnings.
        require_history: Whether to enforce history annotations.
    """
    loader = SchemaLoader(RegistrySettings())

    try:
        violations = CompatibilityValidator.check_evolution(
            loader.load_file(old),
            loader.load_file(new),
            require_history=require_history,
        )
    except ResourcePatternError as error:
        raise ClickException(str(error)) from error

    if not violations:
        echo('No compatibility violations')
        return

    for violation in violations:
        echo(str(violation))

    if warn:
        CompatibilityValidator.warn(violations)
        return

    get_current_context().exit(1)


if __name__ == '__main__':
    cli()
