"""Command-line entrypoint for diffing two Ambre snapshots."""
from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from ambre_reco.application.archive.use_cases import ArchiveChangeSetUseCase
from ambre_reco.application.use_cases import ReconcileImportUseCase, ReconciliationContext
from ambre_reco.config import Settings, configure_logging, get_settings
from ambre_reco.domain.errors import ReconciliationError
from ambre_reco.domain.services import SnapshotDiffer
from ambre_reco.domain.view import ViewBuilder
from ambre_reco.infrastructure.archive.file_repository import FileSystemArchiveRepository
from ambre_reco.infrastructure.parsing.reference_file import (
    guarantees_to_records,
    invoices_to_records,
    states_to_records,
)
from ambre_reco.infrastructure.repositories.file_repositories import FileSnapshotLoader
from ambre_reco.infrastructure.repositories.memory_repositories import (
    InMemoryReconciliationStore,
    InMemoryReferenceData,
)
from ambre_reco.presentation.change_report import render_csv, view_to_row


def parse_args(argv: list[str], settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Classify ledger records between two Ambre snapshots")
    parser.add_argument("previous", type=str, help="Path to the previous snapshot (CSV or XLSX)")
    parser.add_argument("current", type=str, help="Path to the newly imported snapshot (CSV or XLSX)")
    parser.add_argument(
        "--archive",
        type=str,
        nargs="?",
        const=str(settings.archive_dir),
        help=f"Archive the change set under this directory (default: {settings.archive_dir})",
    )
    parser.add_argument("--run-id", type=str, help="Archive run identifier (default: current timestamp)")
    parser.add_argument("--states", type=str, help="Reconciliation state file (CSV or XLSX)")
    parser.add_argument("--guarantees", type=str, help="DWINGS guarantee file (CSV or XLSX)")
    parser.add_argument("--invoices", type=str, help="DWINGS invoice file (CSV or XLSX)")
    parser.add_argument("--views", type=str, help="Write the annotated view records to this CSV file")
    parser.add_argument("--workers", type=int, default=settings.workers, help="Worker threads for large snapshots")
    parser.add_argument("--log-level", type=str, default=settings.log_level)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"error: invalid AMBRE_RECO_* configuration: {exc}", file=sys.stderr)
        return 2
    args = parse_args(argv if argv is not None else sys.argv[1:], settings)
    configure_logging(args.log_level)

    consumers = []
    if args.archive:
        run_id = args.run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
        consumers.append(ArchiveChangeSetUseCase(repository=FileSystemArchiveRepository(Path(args.archive)), run_id=run_id))

    try:
        states = states_to_records(Path(args.states)) if args.states else ()
        reference_data = InMemoryReferenceData(
            guarantees=guarantees_to_records(Path(args.guarantees)) if args.guarantees else (),
            invoices=invoices_to_records(Path(args.invoices)) if args.invoices else (),
        )
        context = ReconciliationContext(
            previous_loader=FileSnapshotLoader(Path(args.previous)),
            current_loader=FileSnapshotLoader(Path(args.current)),
            state_store=InMemoryReconciliationStore(states),
            guarantee_lookup=reference_data,
            invoice_lookup=reference_data,
            consumers=consumers,
            differ=SnapshotDiffer(workers=args.workers, parallel_threshold=settings.parallel_threshold),
            view_builder=ViewBuilder(workers=args.workers, parallel_threshold=settings.parallel_threshold),
        )
        response = ReconcileImportUseCase(context).execute()
    except ReconciliationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    summary = response.summary
    print("Import Summary")
    print("==============")
    print(f"Previous records: {summary.total_previous}")
    print(f"Current records: {summary.total_current}")
    print(f"New: {summary.new_records}")
    print(f"Updated: {summary.updated_records}")
    print(f"Deleted: {summary.deleted_records}")
    print(f"Potential duplicates: {summary.potential_duplicates}")
    print(f"Unresolved links: {summary.unresolved_links}")

    if summary.has_changes():
        print("\nChanges:")
        for change, record in response.change_set.iter_all():
            print(f"- {change}: {record.key} {record.amount} {record.currency}")
    else:
        print("\nNo changes detected.")

    if args.views:
        Path(args.views).write_bytes(render_csv([view_to_row(view) for view in response.views]))

    for consumer in consumers:
        if consumer.last_receipt is not None:
            print(f"\nArchived to {consumer.last_receipt.location}")

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
