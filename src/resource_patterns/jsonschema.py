"""JSON Schema management."""

from functools import cache
from json import dumps
from typing import TYPE_CHECKING

from pydantic.json_schema import GenerateJsonSchema, JsonSchemaValue

from resource_patterns.schema import SchemaDocument

if TYPE_CHECKING:
    from pydantic_core import core_schema as core


class SchemaGenerator(GenerateJsonSchema):
    """Custom JSON Schema generator for schema documents.

    Annotated name types carrying an `x-ref` key are emitted once under
    `$defs` and referenced from every field using them.
    """

    @classmethod
    @cache
    def make_schema(cls, indent: int | str | None = 4) -> str:
        """Generate the JSON Schema for schema documents.

        Args:
            indent: Indentation level used for JSON formatting.

        Returns:
            Serialized JSON Schema string.
        """
        schema = {
            **SchemaDocument.model_json_schema(schema_generator=cls),
            'title': 'resource-patterns',
            'description': 'JSON Schema for resource-patterns schema documents',
            '$schema': cls.schema_dialect,
        }

        return dumps(
            schema,
            ensure_ascii=False,
            sort_keys=True,
            indent=indent,
        )

    def generate_inner(self, schema: 'core.CoreSchema') -> JsonSchemaValue:
        """Emit name types marked with `x-ref` as shared definitions.

        Args:
            schema: Core schema of the current node.

        Returns:
            A `$ref` link for marked name types, otherwise the inline
            JSON Schema of the node.
        """
        generated = super().generate_inner(schema)

        if (name := generated.get('x-ref')) is None:
            return generated

        definition, link = self.get_cache_defs_ref_schema(name)
        self.definitions[definition] = generated

        return link
