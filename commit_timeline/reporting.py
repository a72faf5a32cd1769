"""
Progress reporting, logging setup and dataset export.

- Color-coded console output (colorama)
- Progress bars with ETA (tqdm)
- JSON export and manifest.json with sha256 checksums
"""

import hashlib
import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from colorama import Fore, Style
from colorama import init as colorama_init
from tqdm import tqdm

from . import SCHEMA_VERSION, VERSION

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

colorama_init(autoreset=True)


def configure_logging(verbose: bool = False):
    """Route library logging to stdout; DEBUG when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


class ProgressReporter:
    """Interactive console output for the CLI."""

    def __init__(
        self, quiet: bool = False, verbose: bool = False, use_colors: bool = True
    ):
        self.quiet = quiet
        self.verbose = verbose
        self.use_colors = use_colors
        self.start_time = time.time()
        self.stage_times = {}

    def _colorize(self, text: str, color: str) -> str:
        """Apply color if enabled"""
        if self.use_colors:
            return f"{color}{text}{Style.RESET_ALL}"
        return text

    def stage_start(self, stage_name: str, message: str = ""):
        """Mark the start of a processing stage"""
        if self.quiet:
            return
        self.stage_times[stage_name] = time.time()

        separator = self._colorize("=" * 70, Fore.CYAN)
        print(f"\n{separator}")
        print(self._colorize(f"🔄 {stage_name}", Fore.BLUE + Style.BRIGHT))
        if message:
            print(f"   {message}")
        print(separator)

    def stage_complete(self, stage_name: str, stats: Optional[Dict] = None):
        """Mark completion of a processing stage"""
        if self.quiet:
            return
        elapsed = time.time() - self.stage_times.get(stage_name, time.time())
        print(
            self._colorize(
                f"✅ {stage_name} complete ({elapsed:.2f}s)", Fore.GREEN + Style.BRIGHT
            )
        )

        if stats and self.verbose:
            for key, value in stats.items():
                print(f"   {key}: {value}")

    def create_progress_bar(self, total: int, desc: str = "Replaying") -> Optional[tqdm]:
        if self.quiet:
            return None
        return tqdm(
            total=total,
            desc=self._colorize(desc, Fore.CYAN),
            unit=" events",
            ncols=100,
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]",
        )

    def info(self, message: str):
        if not self.quiet:
            print(f"{self._colorize('ℹ️  ', Fore.BLUE)}{message}")

    def warning(self, message: str):
        if not self.quiet:
            print(f"{self._colorize('⚠️  ', Fore.YELLOW + Style.BRIGHT)}{message}")

    def error(self, message: str):
        """Display error message (always shown)"""
        print(self._colorize(f"❌ ERROR: {message}", Fore.RED + Style.BRIGHT), file=sys.stderr)

    def success(self, message: str):
        if not self.quiet:
            print(self._colorize(f"✨ {message}", Fore.GREEN + Style.BRIGHT))

    def summary(self, stats: Dict[str, Any], title: str = "📊 SUMMARY"):
        """Display final summary"""
        if self.quiet:
            return
        elapsed = time.time() - self.start_time

        separator = self._colorize("=" * 70, Fore.CYAN)
        print(f"\n{separator}")
        print(self._colorize(title, Fore.MAGENTA + Style.BRIGHT))
        print(separator)
        for key, value in stats.items():
            print(f"   {key}: {value}")

        print(f"\n{self._colorize(f'⏱️  Total time: {elapsed:.2f}s', Fore.YELLOW)}")
        print(f"{separator}\n")


# ============================================================================
# EXPORT
# ============================================================================


def write_json(data: Any, output_path: str) -> int:
    """Write data as pretty JSON, creating parent directories. Returns bytes written."""
    parent = os.path.dirname(output_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    text = json.dumps(data, indent=2, ensure_ascii=False)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(text)
    return len(text.encode("utf-8"))


def write_text(text: str, output_path: str) -> int:
    parent = os.path.dirname(output_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(text)
    return len(text.encode("utf-8"))


def generate_manifest(output_dir: str, dataset_path: str, outputs: Dict[str, str]):
    """Generate manifest.json describing every exported file"""
    manifest = {
        "generator_version": VERSION,
        "schema_version": SCHEMA_VERSION,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "dataset": os.path.abspath(dataset_path),
        "outputs": {},
    }

    for name, file_path in outputs.items():
        full_path = os.path.join(output_dir, file_path)
        if os.path.exists(full_path):
            with open(full_path, "rb") as f:
                data = f.read()

            manifest["outputs"][name] = {
                "file": file_path,
                "file_size_bytes": len(data),
                "sha256": hashlib.sha256(data).hexdigest(),
            }

    write_json(manifest, os.path.join(output_dir, "manifest.json"))
    return manifest
