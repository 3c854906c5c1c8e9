from pydantic import BaseModel, ConfigDict, Field, create_model

# Owned by the attachment service, never taken from a partial update.
MANAGED_FIELDS = frozenset({'id', 'images', 'created_at', 'updated_at'})


def managed_keys(model: type[BaseModel]) -> frozenset[str]:
    """Names and aliases of the managed fields of ``model``."""
    keys = set(MANAGED_FIELDS)
    for name in MANAGED_FIELDS:
        field_info = model.model_fields.get(name)
        if field_info is not None and field_info.alias:
            keys.add(field_info.alias)
    return frozenset(keys)


def create_partial_model(model: type[BaseModel]) -> type[BaseModel]:
    """Create a version of a record model carrying only its editable fields,
    each defaulting to None.

    Used to validate partial field updates; fields managed by the attachment
    service (id, images, timestamps) are left out. A field only accepts an
    explicit None if the record model does.
    """
    field_definitions = {}
    for name, field_info in model.model_fields.items():
        if name in MANAGED_FIELDS:
            continue
        field_definitions[name] = (field_info.annotation, Field(default=None, alias=field_info.alias))

    return create_model(
        f'{model.__name__}Partial',
        __config__=ConfigDict(populate_by_name=True),
        **field_definitions
    )


def partial_fields(model: type[BaseModel], fields: dict | None) -> dict:
    """
    Validate ``fields`` against the partial variant of ``model``.

    :param model: Record model the update targets
    :param fields: Raw field values by name or alias (may be None)
    :return: Only the fields that were explicitly provided, keyed by field name
    :raises pydantic.ValidationError: If a value does not fit its field
    """
    if not fields:
        return {}
    partial = create_partial_model(model)(**fields)
    return partial.model_dump(exclude_unset=True)
