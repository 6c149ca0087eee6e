"""
VocabPro: Resumable Dictionary Import
-------------------------------------

Command-line entry point for importing dictionary PDFs into a card batch.

    python import_pdf.py import words.pdf --batch TODAY --lang en
    python import_pdf.py resume
    python import_pdf.py status
    python import_pdf.py export "words (2024-05-01)" --out words.apkg
    python import_pdf.py export "words (2024-05-01)" --pdf
    python import_pdf.py config CHAPTER_SIZE 25
"""

import argparse
import asyncio
import sys
from pathlib import Path

from vocabpro.config import Config, SettingsManager, SUPPORTED_LANGUAGES
from vocabpro.deck import DeckExporter, default_output_path
from vocabpro.errors import CheckpointError, VocabImportError
from vocabpro.importer import (
    DictionaryPDFParser,
    EnrichmentClient,
    JSONCheckpointStore,
    SmartImporter,
)
from vocabpro.services import CardService, EnrichmentService, create_repository
from vocabpro.utils import TODAY_BATCH


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="import_pdf", description="Resumable dictionary import")
    parser.add_argument("--owner", default=Config.OWNER_ID, help="Owner id the cards belong to")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import a dictionary PDF")
    p_import.add_argument("file")
    p_import.add_argument("--batch", default=TODAY_BATCH, help='Batch id, or "TODAY" to name it after the file')
    p_import.add_argument("--lang", default=Config.DEFAULT_LANG, choices=SUPPORTED_LANGUAGES)

    sub.add_parser("resume", help="Resume the unfinished import")
    sub.add_parser("status", help="Show the unfinished import and stored batches")
    sub.add_parser("clear", help="Discard the unfinished import")

    p_config = sub.add_parser("config", help="Show or change a persisted setting")
    p_config.add_argument("key", choices=sorted(SettingsManager.DEFAULTS))
    p_config.add_argument("value", nargs="?")
    p_config.add_argument("--reset", action="store_true", help="Restore the default value")

    p_export = sub.add_parser("export", help="Export a batch as an Anki package, PDF sheet or CSV")
    p_export.add_argument("batch")
    p_export.add_argument("--out", default=None)
    fmt = p_export.add_mutually_exclusive_group()
    fmt.add_argument("--csv", action="store_true", help="Write pipe-separated CSV instead")
    fmt.add_argument("--pdf", action="store_true", help="Write a printable A4 card sheet instead")

    return parser


def configure(settings: SettingsManager, key: str, value=None, reset: bool = False) -> bool:
    """Print, set or reset one setting. Values are cast to the type of the default."""
    if reset:
        settings.reset(key)
    elif value is not None:
        try:
            settings.set(key, type(SettingsManager.DEFAULTS[key])(value))
        except ValueError:
            print(f"❌ Invalid value for {key}: {value!r}")
            return False
    print(f"{key} = {settings.get(key)}")
    return True


async def run(args: argparse.Namespace) -> bool:
    """Dispatch a subcommand. Returns True on success."""
    if args.command == "config":
        return configure(SettingsManager(), args.key, args.value, args.reset)

    repository = create_repository()

    if args.command == "export":
        df = CardService(repository).get_batch(args.owner, args.batch)
        if df.empty:
            print(f"❌ Batch '{args.batch}' has no cards")
            return False
        if args.csv:
            out = args.out or default_output_path(args.batch).replace(".apkg", ".csv")
            DeckExporter.export_csv(df, out)
            print(f"📄 Wrote {len(df)} cards to {out}")
        elif args.pdf:
            out = args.out or default_output_path(args.batch).replace(".apkg", ".pdf")
            DeckExporter(progress_callback=SmartImporter._default_callback).export_pdf(df, out)
        else:
            DeckExporter(progress_callback=SmartImporter._default_callback).export(
                df, args.out or default_output_path(args.batch), args.batch
            )
        return True

    settings = SettingsManager()

    async with EnrichmentService() as service:
        enrichment = EnrichmentClient(
            service,
            max_attempts=settings.get("MAX_RETRIES", Config.MAX_RETRIES),
            backoff=settings.get("RETRY_BACKOFF", Config.RETRY_BACKOFF),
            timeout=settings.get("TIMEOUT", Config.TIMEOUT),
        )
        importer = SmartImporter(
            owner_id=args.owner,
            parser=DictionaryPDFParser(),
            enrichment=enrichment,
            checkpoint=JSONCheckpointStore(storage_key=settings.get("STORAGE_KEY", Config.STORAGE_KEY)),
            sink=repository,
            chapter_size=settings.get("CHAPTER_SIZE", Config.CHAPTER_SIZE),
            api_delay=settings.get("API_DELAY", Config.API_DELAY),
            max_entries=settings.get("MAX_ENTRIES", Config.MAX_ENTRIES),
        )

        if args.command == "status":
            queue = await importer.load_queue()
            if queue is None:
                print("No unfinished import.")
            else:
                print(f"⏸️ '{queue.batch_id}' ({queue.target_language}): "
                      f"{queue.processed_count}/{queue.total} processed, started {queue.timestamp}")
            for batch in CardService(repository).list_batches(args.owner):
                print(f"  {batch['batch_id']} [{batch['category']}] {batch['count']} cards")
            return True

        if args.command == "clear":
            await importer.clear_queue()
            return True

        if not service.ai_service.is_configured:
            print("❌ No AI API key set (DEEPSEEK_API_KEY, OPENAI_API_KEY or GROQ_API_KEY)")
            return False

        if args.command == "resume":
            result = await importer.resume_import()
        else:
            path = Path(args.file)
            if not path.exists():
                print(f"❌ Error: {path} not found!")
                return False
            result = await importer.start_import(
                path.read_bytes(), args.batch, args.lang, file_name=path.name
            )

        if not result.success:
            print(f"❌ {result.error}")
            if result.resumable:
                print("Run `import_pdf.py resume` to continue.")
            return False

        if result.skipped:
            print(f"Skipped words: {', '.join(result.skipped[:20])}"
                  + (" ..." if len(result.skipped) > 20 else ""))
        return True


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        success = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n[!] Interrupted. Progress up to the last chapter is saved; run `resume` to continue.")
        return 1
    except CheckpointError as e:
        print(f"[ERROR] {e}")
        print("Run `import_pdf.py clear` to discard the unfinished import.")
        return 1
    except VocabImportError as e:
        print(f"[ERROR] {e}")
        return 1
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
