"""Command-line entry point: toggle, init, connect, disconnect and status."""

import argparse
import getpass
import sys
from typing import Callable, Dict, List, Optional

from .logging_utility import logger
from .vpn.config_store import ConfigStore, LoadMode, default_config_path
from .vpn.credentials import validate_secret
from .vpn.exceptions import ConfigurationError, VPNError
from .vpn.manager import ConnectionManager


def _ask(question: str, ask: Callable[[str], str],
         validate: Optional[Callable[[str], bool]] = None, hint: str = "") -> str:
    while True:
        answer = ask(question)
        if answer and (validate is None or validate(answer)):
            return answer
        print(hint or "A value is required.", file=sys.stderr)


def prompt_configuration(input_func: Callable[[str], str] = input,
                         secret_func: Callable[[str], str] = getpass.getpass) -> Dict[str, str]:
    """Interactively collect the three configuration values."""
    return {
        "connectionName": _ask("VPN connection name: ", input_func),
        "secretBase32": _ask("Secret (base32): ", secret_func, validate_secret,
                             hint="A valid base32 secret is required."),
        "passwordStaticPart": _ask("Password static part: ", secret_func),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nvpn",
        description="Toggle a NetworkManager VPN connection that uses a password + TOTP login",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.add_parser("toggle", help="Connect if disconnected, disconnect if connected (default)")
    subparsers.add_parser("init", help="Create the configuration interactively")
    subparsers.add_parser("connect", help="Connect, warn if already connected")
    subparsers.add_parser("disconnect", help="Disconnect, warn if not connected")
    subparsers.add_parser("status", help="Show whether the connection is active")
    return parser


def _store(interactive: bool) -> ConfigStore:
    return ConfigStore(default_config_path(), prompter=prompt_configuration if interactive else None)


def run(command: str, store: ConfigStore) -> None:
    if command == "init":
        if store.prompter is None:
            raise ConfigurationError("init needs an interactive terminal")
        if store.exists():
            logger.warning(f"Replacing existing configuration at {store.path}")
        store.create(store.prompter())
        return

    mode = LoadMode.LENIENT if command == "toggle" else LoadMode.STRICT
    manager = ConnectionManager.from_store(store, mode)

    if command == "toggle":
        manager.toggle()
    elif command == "connect":
        manager.connect()
    elif command == "disconnect":
        manager.disconnect()
    elif command == "status":
        state = manager.get_state()
        print(f"{manager.connection_name}: {state.value}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    command = args.command or "toggle"
    store = _store(interactive=sys.stdin.isatty())

    try:
        run(command, store)
        return 0
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130
    except VPNError as e:
        logger.error(f"Something went wrong during {command}: {str(e)}")
        logger.debug("Failure details", exc_info=True)
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error during {command}: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
