from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any, NoReturn

from dotenv import load_dotenv

from nomismap.adapters.json import (
    MappingPayloadError,
    dump_record,
    parse_mapping,
    parse_primary_key,
    parse_secondary_key,
)
from nomismap.adapters.sqlalchemy import SqlAlchemyDatabase
from nomismap.app import (
    common_third_parties,
    create_mapping,
    delete_mapping,
    delete_mappings,
    find_common,
    get_latest_migrated,
    get_mapping_by_primary,
    get_mapping_by_secondary,
    get_mappings_by_batch,
    merge_identity,
    set_sequence,
    update_identities_in_list,
)
from nomismap.config import configure_logging
from nomismap.domain.model import MAPPING_CLASS_BY_TYPE, MappingType
from nomismap.domain.outcomes import Conflict, Created, NotFound, Updated, ValidationFailure

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from nomismap.app import UnitOfWorkFactory
    from nomismap.domain.model import MappingRecord

log = logging.getLogger(__name__)

MAPPING_TYPE_CHOICES = [mapping_type.value for mapping_type in MappingType]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage NOMIS to DPS identifier mappings")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a mapping from a JSON payload")
    create.add_argument("mapping_type", choices=MAPPING_TYPE_CHOICES)
    create.add_argument(
        "payload",
        help="JSON mapping payload (camelCase fields), or '-' to read it from stdin",
    )

    get = subparsers.add_parser("get", help="Look up a mapping by either of its keys")
    get.add_argument("mapping_type", choices=MAPPING_TYPE_CHOICES)
    key = get.add_mutually_exclusive_group(required=True)
    key.add_argument("--id", dest="primary_key", help="DPS-side identifier")
    key.add_argument(
        "--nomis",
        dest="secondary_key",
        nargs="+",
        metavar="VALUE",
        help="NOMIS-side key values, in key order",
    )

    delete = subparsers.add_parser("delete", help="Delete one mapping by DPS-side identifier")
    delete.add_argument("mapping_type", choices=MAPPING_TYPE_CHOICES)
    delete.add_argument("primary_key")

    purge = subparsers.add_parser("purge", help="Delete all mappings of one type")
    purge.add_argument("mapping_type", choices=MAPPING_TYPE_CHOICES)
    purge.add_argument(
        "--only-migrated",
        action="store_true",
        help="Only delete mappings written by migration batches",
    )

    latest = subparsers.add_parser(
        "latest-migrated", help="Show the most recently migrated mapping"
    )
    latest.add_argument("mapping_type", choices=MAPPING_TYPE_CHOICES)

    batch = subparsers.add_parser("batch", help="List the migrated mappings of one batch")
    batch.add_argument("mapping_type", choices=MAPPING_TYPE_CHOICES)
    batch.add_argument("label", help="Migration batch label")

    merge = subparsers.add_parser(
        "merge", help="Replace one offender number by another in every non-association"
    )
    merge.add_argument("old_offender_no")
    merge.add_argument("new_offender_no")

    update_list = subparsers.add_parser(
        "update-list",
        help="Move the non-associations between OLD and the listed offenders onto NEW",
    )
    update_list.add_argument("old_offender_no")
    update_list.add_argument("new_offender_no")
    update_list.add_argument("offender_nos", nargs="+", metavar="OFFENDER_NO")

    resequence = subparsers.add_parser(
        "set-sequence", help="Change the type sequence of one non-association"
    )
    resequence.add_argument("non_association_id", type=int)
    resequence.add_argument("nomis_type_sequence", type=int)

    common = subparsers.add_parser(
        "common", help="Non-associations linking two offenders to a shared third party"
    )
    common.add_argument("offender_no")
    common.add_argument("other_offender_no")
    common.add_argument(
        "--third-parties",
        action="store_true",
        help="Print only the shared third-party offender numbers",
    )

    return parser.parse_args(list(argv))


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2))  # noqa: T201


def _fail(payload: dict[str, Any]) -> NoReturn:
    print(json.dumps(payload, indent=2), file=sys.stderr)  # noqa: T201
    sys.exit(1)


def _record_type(args: argparse.Namespace) -> type[MappingRecord]:
    return MAPPING_CLASS_BY_TYPE[MappingType(args.mapping_type)]


def _read_payload(raw: str) -> str:
    return sys.stdin.read() if raw == "-" else raw


def _emit_lookup(result: MappingRecord | NotFound) -> None:
    if isinstance(result, NotFound):
        _fail({"status": result.status.value, "message": result.reason})
    _emit(dump_record(result))


def _emit_update(result: Updated | NotFound | ValidationFailure) -> None:
    match result:
        case Updated(count=count):
            _emit({"status": result.status.value, "count": count})
        case NotFound(reason=reason):
            _fail({"status": result.status.value, "message": reason})
        case ValidationFailure(reason=reason, record=record):
            _fail(
                {
                    "status": result.status.value,
                    "message": reason,
                    "record": dump_record(record) if record is not None else None,
                }
            )


def _run(args: argparse.Namespace, unit_of_work_factory: UnitOfWorkFactory) -> None:
    command = args.command
    if command == "create":
        mapping_type = MappingType(args.mapping_type)
        record = parse_mapping(mapping_type, _read_payload(args.payload))
        result = create_mapping(record, unit_of_work_factory=unit_of_work_factory)
        match result:
            case Created(record=stored, reused=reused):
                _emit(
                    {
                        "status": result.status.value,
                        "reused": reused,
                        "mapping": dump_record(stored),
                    }
                )
            case Conflict(existing=existing, duplicate=duplicate):
                _fail(
                    {
                        "status": result.status.value,
                        "message": result.message,
                        "existing": dump_record(existing) if existing is not None else None,
                        "duplicate": dump_record(duplicate),
                    }
                )
    elif command == "get":
        mapping_type = MappingType(args.mapping_type)
        record_type = _record_type(args)
        if args.primary_key is not None:
            lookup = get_mapping_by_primary(
                record_type,
                parse_primary_key(mapping_type, args.primary_key),
                unit_of_work_factory=unit_of_work_factory,
            )
        else:
            lookup = get_mapping_by_secondary(
                record_type,
                parse_secondary_key(mapping_type, args.secondary_key),
                unit_of_work_factory=unit_of_work_factory,
            )
        _emit_lookup(lookup)
    elif command == "delete":
        deleted = delete_mapping(
            _record_type(args),
            parse_primary_key(MappingType(args.mapping_type), args.primary_key),
            unit_of_work_factory=unit_of_work_factory,
        )
        _emit({"status": deleted.status.value, "count": deleted.count})
    elif command == "purge":
        deleted = delete_mappings(
            _record_type(args),
            only_migrated=args.only_migrated,
            unit_of_work_factory=unit_of_work_factory,
        )
        _emit({"status": deleted.status.value, "count": deleted.count})
    elif command == "latest-migrated":
        _emit_lookup(
            get_latest_migrated(_record_type(args), unit_of_work_factory=unit_of_work_factory)
        )
    elif command == "batch":
        records = get_mappings_by_batch(
            _record_type(args), args.label, unit_of_work_factory=unit_of_work_factory
        )
        _emit([dump_record(record) for record in records])
    elif command == "merge":
        _emit_update(
            merge_identity(
                args.old_offender_no,
                args.new_offender_no,
                unit_of_work_factory=unit_of_work_factory,
            )
        )
    elif command == "update-list":
        _emit_update(
            update_identities_in_list(
                args.old_offender_no,
                args.new_offender_no,
                args.offender_nos,
                unit_of_work_factory=unit_of_work_factory,
            )
        )
    elif command == "set-sequence":
        _emit_update(
            set_sequence(
                args.non_association_id,
                args.nomis_type_sequence,
                unit_of_work_factory=unit_of_work_factory,
            )
        )
    elif command == "common":
        if args.third_parties:
            _emit(
                list(
                    common_third_parties(
                        args.offender_no,
                        args.other_offender_no,
                        unit_of_work_factory=unit_of_work_factory,
                    )
                )
            )
        else:
            common = find_common(
                args.offender_no,
                args.other_offender_no,
                unit_of_work_factory=unit_of_work_factory,
            )
            _emit([dump_record(record) for record in common])
    else:
        raise ValueError(f"Unsupported command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        with SqlAlchemyDatabase() as database:
            _run(parsed_args, database.unit_of_work)
    except MappingPayloadError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error while handling %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
