"""
Job record codec.

Flattens a JobRecord into property rows of
``(job_name, prop_name, prop_val, prop_class, prop_index)`` and back.

- The tool selector is a ``schema``-class row named ``tool``.
- Scalars occupy one row each with a NULL index.
- A string array writes a header row (NULL index, value = element count)
  followed by one row per element tagged with its position.

Decoding sorts array elements by position, never by arrival order, skips
rows whose class it does not know, and raises CorruptRecordError for
anything it cannot reconstruct exactly.
"""

from collections.abc import Iterable
from typing import NamedTuple, Optional

from jobstore.errors import CorruptRecordError
from jobstore.logging import get_logger
from jobstore.models import FieldKind, JobOptions, JobRecord, OptionField


logger = get_logger(__name__)


SCHEMA_CLASS = "schema"
TOOL_PROPERTY = "tool"

_TRUE = "true"
_FALSE = "false"


class PropertyRow(NamedTuple):
    """One stored property of a job."""
    job_name: str
    prop_name: str
    prop_val: Optional[str]
    prop_class: str
    prop_index: Optional[int] = None


def encode_job(job_name: str, record: JobRecord) -> list[PropertyRow]:
    """Encode a record into the rows that persist it."""
    rows = [PropertyRow(job_name, TOOL_PROPERTY, record.tool, SCHEMA_CLASS)]

    for name, option in record.options.fields():
        kind = option.kind
        if kind is FieldKind.STRING_ARRAY:
            rows.append(PropertyRow(job_name, name, str(len(option.value)), kind.value))
            rows.extend(
                PropertyRow(job_name, name, item, kind.value, index)
                for index, item in enumerate(option.value)
            )
        elif kind is FieldKind.BOOL:
            rows.append(PropertyRow(job_name, name, _TRUE if option.value else _FALSE, kind.value))
        else:
            rows.append(PropertyRow(job_name, name, str(option.value), kind.value))

    return rows


def _decode_scalar(job_name: str, kind: FieldKind, row: PropertyRow) -> OptionField:
    if row.prop_index is not None:
        raise CorruptRecordError(job_name, f"scalar {row.prop_name!r} has an index")
    if row.prop_val is None:
        raise CorruptRecordError(job_name, f"scalar {row.prop_name!r} has no value")

    if kind is FieldKind.STRING:
        return OptionField(kind, row.prop_val)
    if kind is FieldKind.INT:
        try:
            return OptionField(kind, int(row.prop_val))
        except ValueError:
            raise CorruptRecordError(
                job_name, f"{row.prop_name!r} is not an integer: {row.prop_val!r}"
            ) from None
    if row.prop_val == _TRUE:
        return OptionField(kind, True)
    if row.prop_val == _FALSE:
        return OptionField(kind, False)
    raise CorruptRecordError(job_name, f"{row.prop_name!r} is not a boolean: {row.prop_val!r}")


def _decode_array(job_name: str, name: str, rows: list[PropertyRow]) -> OptionField:
    headers = [row for row in rows if row.prop_index is None]
    elements = sorted(
        (row for row in rows if row.prop_index is not None),
        key=lambda row: row.prop_index,
    )

    if len(headers) != 1:
        raise CorruptRecordError(job_name, f"array {name!r} has {len(headers)} header rows")
    try:
        length = int(headers[0].prop_val)
    except (TypeError, ValueError):
        raise CorruptRecordError(
            job_name, f"array {name!r} has a bad length: {headers[0].prop_val!r}"
        ) from None
    if length < 0:
        raise CorruptRecordError(job_name, f"array {name!r} has a negative length: {length}")

    positions = [row.prop_index for row in elements]
    if positions != list(range(length)):
        raise CorruptRecordError(
            job_name, f"array {name!r} expected {length} elements, found positions {positions}"
        )
    if any(row.prop_val is None for row in elements):
        raise CorruptRecordError(job_name, f"array {name!r} has a NULL element")

    return OptionField(FieldKind.STRING_ARRAY, tuple(row.prop_val for row in elements))


def decode_job(job_name: str, rows: Iterable[PropertyRow]) -> JobRecord:
    """
    Rebuild a record from its stored rows.

    Args:
        job_name: Name the rows were loaded for
        rows: Property rows in any order

    Returns:
        The reconstructed record

    Raises:
        CorruptRecordError: if the rows do not describe a complete record
    """
    tool: Optional[str] = None
    scalars: dict[str, PropertyRow] = {}
    arrays: dict[str, list[PropertyRow]] = {}
    kinds: dict[str, FieldKind] = {}

    for row in rows:
        row = PropertyRow(*row)
        if row.job_name != job_name:
            raise CorruptRecordError(job_name, f"row belongs to job {row.job_name!r}")

        if row.prop_class == SCHEMA_CLASS:
            if row.prop_name != TOOL_PROPERTY:
                logger.debug("Skipping legacy schema property", job_name=job_name, prop=row.prop_name)
                continue
            if tool is not None:
                raise CorruptRecordError(job_name, "multiple tool rows")
            if not row.prop_val:
                raise CorruptRecordError(job_name, "empty tool selector")
            tool = row.prop_val
            continue

        try:
            kind = FieldKind(row.prop_class)
        except ValueError:
            logger.debug(
                "Skipping property of unknown class",
                job_name=job_name,
                prop=row.prop_name,
                prop_class=row.prop_class,
            )
            continue

        if kinds.setdefault(row.prop_name, kind) is not kind:
            raise CorruptRecordError(job_name, f"{row.prop_name!r} stored with mixed kinds")

        if kind is FieldKind.STRING_ARRAY:
            arrays.setdefault(row.prop_name, []).append(row)
        elif row.prop_name in scalars:
            raise CorruptRecordError(job_name, f"duplicate rows for {row.prop_name!r}")
        else:
            scalars[row.prop_name] = row

    if tool is None:
        raise CorruptRecordError(job_name, "missing tool selector")

    options = JobOptions()
    for name, kind in kinds.items():
        if kind is FieldKind.STRING_ARRAY:
            options.set(name, _decode_array(job_name, name, arrays[name]))
        else:
            options.set(name, _decode_scalar(job_name, kind, scalars[name]))

    return JobRecord(tool=tool, options=options)
