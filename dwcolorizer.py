#!/usr/bin/env python3
"""
DWColorizer

Adds a new color theme to Adobe Dreamweaver by replacing Colors.xml in every
CodeColoring folder under the user's Adobe application data, keeping one
backup generation that `/u` swaps back in.
"""
from __future__ import annotations

import argparse
import os
import shutil
import subprocess
import sys
import time
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence


APP_NAME = "DWColorizer"
APP_VERSION = "1.0.0"

VENDOR_DIR = "Adobe"
MARKER_DIR = "CodeColoring"
THEME_FILE = "Colors.xml"
BACKUP_SUFFIX = ".bak"

# Background color the user should pick in Preferences > Code Coloring.
INSTALL_BACKGROUND = "252A32"
REVERT_BACKGROUND = "FFFFFF"

DEFAULT_LOG_DIR = Path("~/.dwcolorizer").expanduser()
BUNDLED_THEME = """\
<?xml version="1.0" encoding="utf-8"?>
<colors>
	<colorGroup>
		<syntaxColor id="CodeColor_Background" bgcolor="#252A32" />
		<syntaxColor id="CodeColor_Text" text="#D5D8DE" />
		<syntaxColor id="CodeColor_HTMLComment" text="#6A7384" italic="true" />
		<syntaxColor id="CodeColor_HTMLTag" text="#E06C75" />
		<syntaxColor id="CodeColor_HTMLAttrName" text="#D19A66" />
		<syntaxColor id="CodeColor_HTMLAttrValue" text="#98C379" />
		<syntaxColor id="CodeColor_HTMLEntity" text="#56B6C2" />
		<syntaxColor id="CodeColor_HTMLDoctype" text="#8A93A5" />
		<syntaxColor id="CodeColor_CSSSelector" text="#E5C07B" />
		<syntaxColor id="CodeColor_CSSProperty" text="#61AFEF" />
		<syntaxColor id="CodeColor_CSSValue" text="#98C379" />
		<syntaxColor id="CodeColor_CSSComment" text="#6A7384" italic="true" />
		<syntaxColor id="CodeColor_JavascriptReserved" text="#C678DD" />
		<syntaxColor id="CodeColor_JavascriptNative" text="#56B6C2" />
		<syntaxColor id="CodeColor_JavascriptNumber" text="#D19A66" />
		<syntaxColor id="CodeColor_JavascriptString" text="#98C379" />
		<syntaxColor id="CodeColor_JavascriptOperator" text="#ABB2BF" />
		<syntaxColor id="CodeColor_JavascriptComment" text="#6A7384" italic="true" />
		<syntaxColor id="CodeColor_PHPScriptReserved" text="#C678DD" />
		<syntaxColor id="CodeColor_PHPScriptVariable" text="#E06C75" />
		<syntaxColor id="CodeColor_PHPScriptString" text="#98C379" />
		<syntaxColor id="CodeColor_PHPScriptComment" text="#6A7384" italic="true" />
	</colorGroup>
</colors>
"""

TEXT_USAGE = (
    "Adds a new color theme to Adobe Dreamweaver.\n\n"
    "DWC [/?] [/u]\n\n"
    "\t/?\tDisplays this help message.\n"
    "\t/u\tUndos the theme replacement.\n"
)

TEXT_DONE = (
    "\nDone. Press enter and Dreamweaver will be opened to allow\n"
    "you to go to Preferences (Ctrl+U), click Code Coloring, and\n"
    "change the default background to #{background}."
)


class NoBackupError(FileNotFoundError):
    """Raised when a revert finds no Colors.xml.bak to restore."""


class ThemeFileLockedError(OSError):
    """Raised when the live theme file cannot be opened for writing."""


@dataclass(frozen=True)
class AppInfo:
    name: str
    version: str

    @property
    def title(self) -> str:
        return f"{self.name} v{self.version}"


@dataclass(frozen=True)
class ThemeTarget:
    directory: Path

    @property
    def theme_path(self) -> Path:
        return self.directory / THEME_FILE

    @property
    def backup_path(self) -> Path:
        return self.directory / f"{THEME_FILE}{BACKUP_SUFFIX}"


def info(message: str) -> None:
    print(f"[+] {message}")


def warn(message: str) -> None:
    print(f"[!] {message}")


def debug(message: str, verbose: bool) -> None:
    if verbose:
        print(f"[debug] {message}")


def get_app_info() -> AppInfo:
    return AppInfo(APP_NAME, APP_VERSION)


def get_appdata(override: Optional[str] = None) -> Path:
    """Resolve the per-user application data folder.

    DWCOLORIZER_APPDATA wins over the platform default so tests and portable
    setups can point the tool somewhere else.
    """
    if override:
        return Path(override).expanduser()
    env_appdata = os.environ.get("DWCOLORIZER_APPDATA")
    if env_appdata:
        return Path(env_appdata).expanduser()
    if sys.platform == "win32" and os.environ.get("APPDATA"):
        return Path(os.environ["APPDATA"])
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg).expanduser() if xdg else Path.home() / ".config"


def load_bundled_theme() -> str:
    """Return the theme compiled into the module."""
    return BUNDLED_THEME


def is_locked(path: Path) -> bool:
    """True when an existing file cannot be opened for read/write."""
    if not path.exists():
        return False
    try:
        with open(path, "r+b"):
            pass
    except OSError:
        return True
    return False


def discover_targets(root: Path, marker: str = MARKER_DIR) -> List[ThemeTarget]:
    """Find every `marker` directory below root, in walk order."""
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")
    wanted = os.path.normcase(marker)
    targets: List[ThemeTarget] = []
    for current, dirs, _files in os.walk(root):
        for name in dirs:
            if os.path.normcase(name) == wanted:
                targets.append(ThemeTarget(Path(current) / name))
    return targets


def install_theme(target: ThemeTarget, content: str, dry_run: bool = False, verbose: bool = False) -> str:
    """Back up the live theme (if any) and write the new one.

    Returns "overwritten" when a theme existed before, "created" otherwise.
    """
    existed = target.theme_path.exists()
    if existed:
        if is_locked(target.theme_path):
            raise ThemeFileLockedError(f"{target.theme_path} cannot be opened for writing")
        print(f"Backing up old \"{THEME_FILE}\" file...")
        if not dry_run:
            shutil.copyfile(target.theme_path, target.backup_path)
        debug(f"Copied {target.theme_path} -> {target.backup_path}", verbose)

    print(f"{'Overwriting' if existed else 'Creating'} \"{THEME_FILE}\" file...")
    if not dry_run:
        target.theme_path.write_bytes(content.encode("utf-8"))
    debug(f"Wrote {len(content)} characters to {target.theme_path}", verbose)
    return "overwritten" if existed else "created"


def revert_theme(target: ThemeTarget, dry_run: bool = False, verbose: bool = False) -> None:
    """Swap the live theme with its backup."""
    if not target.backup_path.exists():
        raise NoBackupError(f"No backup at {target.backup_path}")
    if is_locked(target.theme_path):
        raise ThemeFileLockedError(f"{target.theme_path} cannot be opened for writing")

    custom = target.theme_path.read_bytes() if target.theme_path.exists() else None

    print(f"Restoring old \"{THEME_FILE}\" file...")
    if not dry_run:
        shutil.copyfile(target.backup_path, target.theme_path)
    debug(f"Copied {target.backup_path} -> {target.theme_path}", verbose)

    if custom is None:
        debug(f"No live {THEME_FILE} to keep; backup left in place", verbose)
        return
    print(f"Backing up custom \"{THEME_FILE}\" file...")
    if not dry_run:
        target.backup_path.write_bytes(custom)


def install_all(targets: Sequence[ThemeTarget], content: str, dry_run: bool = False, verbose: bool = False) -> int:
    """Install into every target; returns the number of failed targets."""
    failures = 0
    for target in targets:
        debug(f"Installing into {target.directory}", verbose)
        try:
            install_theme(target, content, dry_run=dry_run, verbose=verbose)
        except OSError as exc:
            warn(f"Failed to install theme in {target.directory}: {exc}")
            failures += 1
    return failures


def revert_first(targets: Sequence[ThemeTarget], dry_run: bool = False, verbose: bool = False) -> None:
    """Revert the first target only.

    Later targets are never touched, even when the first one succeeds.
    NoBackupError and OSError propagate to the caller.
    """
    if not targets:
        return
    if len(targets) > 1:
        debug(f"Reverting {targets[0].directory}; skipping {len(targets) - 1} other target(s)", verbose)
    revert_theme(targets[0], dry_run=dry_run, verbose=verbose)


class ConsoleAdapter:
    """Console cosmetics and the Dreamweaver launch.

    Everything here is best effort: unsupported platforms get no-ops.
    """

    RED = "\033[31m"
    RESET = "\033[0m"
    STD_OUTPUT_HANDLE = -11
    ENABLE_VIRTUAL_TERMINAL_PROCESSING = 0x0004

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        self.is_windows = sys.platform == "win32"
        self.is_tty = sys.stdout.isatty()

    def setup(self, app: AppInfo) -> None:
        self.set_title(app.title)
        if self.is_tty:
            if self.is_windows:
                self.enable_vt_mode()
            sys.stdout.write(self.RED)
            sys.stdout.flush()

    def enable_vt_mode(self) -> None:
        """Let cmd.exe render ANSI escape codes."""
        try:
            import ctypes

            kernel32 = ctypes.windll.kernel32
            handle = kernel32.GetStdHandle(self.STD_OUTPUT_HANDLE)
            mode = ctypes.c_uint32()
            if kernel32.GetConsoleMode(handle, ctypes.byref(mode)):
                kernel32.SetConsoleMode(handle, mode.value | self.ENABLE_VIRTUAL_TERMINAL_PROCESSING)
        except (ImportError, AttributeError, OSError) as exc:
            debug(f"Could not enable VT mode: {exc}", self.verbose)

    def reset(self) -> None:
        if self.is_tty:
            sys.stdout.write(self.RESET)
            sys.stdout.flush()

    def set_title(self, title: str) -> None:
        if self.is_windows:
            try:
                import ctypes

                ctypes.windll.kernel32.SetConsoleTitleW(title)
            except (ImportError, AttributeError, OSError) as exc:
                debug(f"Could not set console title: {exc}", self.verbose)
        elif self.is_tty:
            sys.stdout.write(f"\033]0;{title}\007")
            sys.stdout.flush()

    def pause(self, message: str = "Press any key to begin...") -> None:
        print(message, end="", flush=True)
        if self.is_windows:
            try:
                import msvcrt

                msvcrt.getwch()
                return
            except ImportError:
                pass
        try:
            input()
        except EOFError:
            pass

    def launch_application(self) -> None:
        if not self.is_windows:
            warn("Launching Dreamweaver is only supported on Windows; open it manually.")
            return
        cmd = ["cmd.exe", "/C", "start", "dreamweaver"]
        debug(f"Running command: {' '.join(cmd)}", self.verbose)
        try:
            result = subprocess.run(cmd, check=False, capture_output=True, text=True)
        except FileNotFoundError:
            warn("cmd.exe not found; open Dreamweaver manually.")
            return
        if result.returncode != 0:
            warn(f"Could not start Dreamweaver (exit {result.returncode}): {result.stderr.strip()}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dwcolorizer",
        description="Adds a new color theme to Adobe Dreamweaver.",
    )
    parser.add_argument(
        "switch",
        nargs="?",
        help="/? shows usage, /u reverts the last theme replacement",
    )
    parser.add_argument("--yes", action="store_true", help="Do not wait for key presses")
    parser.add_argument("--no-launch", action="store_true", help="Do not start Dreamweaver when done")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing files",
    )
    parser.add_argument(
        "--appdata",
        help="Application data folder to search (default: platform user config dir)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def resolve_mode(switch: Optional[str]) -> str:
    if switch == "/?":
        return "help"
    if switch and switch.lower() == "/u":
        return "revert"
    return "install"


def run(args: argparse.Namespace, console: ConsoleAdapter, app: AppInfo) -> int:
    verbose = args.verbose
    mode = resolve_mode(args.switch)
    debug(f"Mode: {mode}", verbose)

    if mode == "help":
        print(TEXT_USAGE, end="")
        return 0

    print(f"Welcome to the {app.name}!\nThis will add a new color theme to Adobe Dreamweaver.\n")
    if not args.yes:
        console.pause()
    print("\n")

    root = get_appdata(args.appdata) / VENDOR_DIR
    try:
        targets = discover_targets(root)
    except FileNotFoundError:
        print("Adobe application data directory not found.")
        return 0
    debug(f"Found {len(targets)} {MARKER_DIR} folder(s) under {root}", verbose)
    if not targets:
        warn(f"No {MARKER_DIR} folders found under {root}")

    if args.dry_run:
        info("Dry run: no files will be written")

    exit_code = 0
    if mode == "revert":
        print("Reverting color scheme...\n")
        try:
            revert_first(targets, dry_run=args.dry_run, verbose=verbose)
        except NoBackupError:
            print("No backup exists.")
            return 0
        except OSError as exc:
            warn(f"Failed to revert theme in {targets[0].directory}: {exc}")
            return 1
        background = REVERT_BACKGROUND
    else:
        content = load_bundled_theme()
        if install_all(targets, content, dry_run=args.dry_run, verbose=verbose):
            exit_code = 1
        background = INSTALL_BACKGROUND

    print(TEXT_DONE.format(background=background))
    if not args.yes:
        console.pause(message="")
    if not args.no_launch and not args.dry_run:
        console.launch_application()
    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)
    if unknown:
        debug(f"Ignoring arguments: {' '.join(unknown)}", args.verbose)

    app = get_app_info()
    console = ConsoleAdapter(verbose=args.verbose)
    console.setup(app)
    try:
        return run(args, console, app)
    finally:
        print()
        console.reset()


def write_error_log(exc: BaseException, log_dir: Path = DEFAULT_LOG_DIR) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "dwcolorizer.error.log"
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    with open(log_file, "a") as f:
        f.write(f"\n--- Error at {timestamp} ---\n")
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=f)
    return log_file


def entrypoint() -> None:
    try:
        code = main()
    except KeyboardInterrupt:
        print()
        code = 1
    except Exception as e:
        log_file = write_error_log(e)
        print(f"\n[!] An unexpected error occurred: {e}")
        print(f"[!] Details saved to: {log_file}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    entrypoint()
