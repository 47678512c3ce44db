#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Field Census - sync command line
Main entry point for headless synchronization

Usage:
    python main.py export --kind taxpayers [--chunk-size 20]
    python main.py refs
    python main.py status
    python main.py set-credentials --username agent@example.org
"""

import argparse
import getpass
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from app.config import Config, ExportKinds
from repositories.database import Database
from repositories.settings_repository import SettingsRepository
from services.api_client import CensusApiClient
from services.auth_service import AuthService
from services.credentials_service import CredentialsService
from services.exceptions import AuthenticationException, LocalStorageException, SyncBusyError
from services.export.export_manager import ExportManager, ExportStatus
from services.refs_sync_service import ReferenceSyncService
from services.sync_gate import SyncGate
from utils.logger import setup_logger

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_REFUSED = 2


@dataclass
class SyncServices:
    """Everything a sync entry point needs, wired to one database."""
    db: Database
    credentials: CredentialsService
    export_manager: ExportManager
    refs_service: ReferenceSyncService


def create_services(db: Database, api_client: Optional[CensusApiClient] = None) -> SyncServices:
    api_client = api_client or CensusApiClient()
    credentials = CredentialsService(SettingsRepository(db))
    auth_service = AuthService(api_client, credentials)
    gate = SyncGate()
    return SyncServices(
        db=db,
        credentials=credentials,
        export_manager=ExportManager(db, api_client, auth_service, gate),
        refs_service=ReferenceSyncService(db, api_client, auth_service, gate),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="census-sync", description=Config.APP_NAME)
    parser.add_argument("--version", action="version", version=f"%(prog)s {Config.VERSION}")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database file")
    parser.add_argument("--quiet", action="store_true", help="Log to file only")
    commands = parser.add_subparsers(dest="command", required=True)

    export = commands.add_parser("export", help="Send pending records to the server")
    export.add_argument("--kind", choices=ExportKinds.ALL, required=True)
    export.add_argument("--chunk-size", type=int, default=Config.EXPORT_CHUNK_SIZE)
    export.add_argument("--max-chunks", type=int, default=None)

    commands.add_parser("refs", help="Replace the lookup tables with the server's")
    commands.add_parser("status", help="Show pending and failed record counts")

    creds = commands.add_parser("set-credentials", help="Store the sync account")
    creds.add_argument("--username", required=True)
    creds.add_argument("--password", default=None, help="Prompted when omitted")

    commands.add_parser("reset-failed", help="Put failed records back to pending")
    return parser


def run_export(services: SyncServices, kind: str, chunk_size: int, max_chunks: Optional[int]) -> int:
    try:
        summary = services.export_manager.export_all(kind, chunk_size=chunk_size, max_iterations=max_chunks)
    except AuthenticationException as e:
        print(f"Authentification refusée: {e.message}")
        if e.summary is not None:
            print(f"Avant l'interruption: {e.summary.synced_count} envoyé(s), {e.summary.failed_count} en échec")
        return EXIT_REFUSED
    except SyncBusyError as e:
        print(e.message)
        return EXIT_REFUSED

    print(f"Export {kind}: {summary.status.value}")
    print(f"  envoyés: {summary.synced_count}  en échec: {summary.failed_count}  lots: {len(summary.chunks)}")
    for error in summary.errors:
        print(f"  - {error}")
    if summary.status in (ExportStatus.SUCCESS, ExportStatus.EMPTY):
        return EXIT_OK
    return EXIT_FAILED


def run_refs(services: SyncServices) -> int:
    try:
        result = services.refs_service.synchronize()
    except SyncBusyError as e:
        print(e.message)
        return EXIT_REFUSED
    print(result.message)
    for table, count in result.counts.items():
        print(f"  {table}: {count}")
    return EXIT_OK if result.success else EXIT_FAILED


def run_status(services: SyncServices) -> int:
    manager = services.export_manager
    for kind in manager.get_available_kinds():
        counts = manager.get_strategy(kind).ledger.count_by_status()
        parts = ", ".join(f"{status.label}: {count}" for status, count in counts.items())
        to_export = sum(count for status, count in counts.items() if status.is_exportable)
        print(f"{kind}: {parts} (à exporter: {to_export})")
    username = services.credentials.get_stored_username()
    print(f"Compte de synchronisation: {username or '(aucun)'}")
    return EXIT_OK


def run_reset_failed(services: SyncServices) -> int:
    manager = services.export_manager
    for kind in manager.get_available_kinds():
        count = manager.get_strategy(kind).ledger.reset_failed()
        print(f"{kind}: {count} remis en attente")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logger = setup_logger(console=not args.quiet)

    db = Database(args.db)
    try:
        db.initialize()
        services = create_services(db)

        if args.command == "export":
            return run_export(services, args.kind, args.chunk_size, args.max_chunks)
        if args.command == "refs":
            return run_refs(services)
        if args.command == "status":
            return run_status(services)
        if args.command == "reset-failed":
            return run_reset_failed(services)
        if args.command == "set-credentials":
            password = args.password or getpass.getpass("Mot de passe: ")
            services.credentials.save_credentials(args.username, password)
            print("Identifiants enregistrés")
            return EXIT_OK
        return EXIT_FAILED

    except ValueError as e:
        print(str(e))
        return EXIT_FAILED
    except LocalStorageException as e:
        logger.exception(f"Local storage failure: {e}")
        print(f"Erreur de la base locale: {e.message}")
        return EXIT_FAILED
    finally:
        db.close()


def cli():
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
