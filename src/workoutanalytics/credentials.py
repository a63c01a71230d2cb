#!/usr/bin/env python3
"""
Interactive setup of the .env file read by ``workoutanalytics.config``.
"""

import getpass
from pathlib import Path

from .constants import DEFAULT_DURATION_TOLERANCE, DEFAULT_LOG_LEVEL, DEFAULT_TOKEN_STORE

__all__ = ["create_env_file", "main"]


def _ask(prompt: str, default) -> str:
    answer = input(f"{prompt} [default: {default}]: ")
    return answer.strip() or str(default)


def _confirm(prompt: str) -> bool:
    return input(f"{prompt} (y/n): ").strip().lower() == "y"


def _ensure_gitignored(gitignore_path: Path) -> None:
    """Offer to list .env in .gitignore, creating the file if needed."""
    if gitignore_path.exists():
        if ".env" in gitignore_path.read_text(encoding="utf-8"):
            return
        if _confirm("\n.env not found in .gitignore. Add it now?"):
            with open(gitignore_path, "a", encoding="utf-8") as f:
                f.write("\n# Environment variables\n.env\n")
            print("✅ Added .env to .gitignore")
    elif _confirm("\nNo .gitignore found. Create one?"):
        gitignore_path.write_text("# Environment variables\n.env\n", encoding="utf-8")
        print("✅ Created .gitignore with .env entry")


def create_env_file() -> None:
    """Prompt for Garmin credentials and session settings and write .env."""
    print("🔐 workoutanalytics setup")
    print("=" * 50)
    print("\nCredentials are only used for the first login; later runs reuse")
    print("the saved session tokens. Keep .env out of version control!\n")

    env_path = Path(".env")
    if env_path.exists() and not _confirm(".env file already exists. Overwrite?"):
        print("Cancelled.")
        return

    email = input("Garmin Connect Email: ")
    password = getpass.getpass("Garmin Connect Password: ")
    token_store = _ask("Session token directory", DEFAULT_TOKEN_STORE)
    tolerance = _ask("Lap duration tolerance in seconds", DEFAULT_DURATION_TOLERANCE)
    log_level = _ask("Log level", DEFAULT_LOG_LEVEL).upper()

    env_path.write_text(
        "# Garmin Connect Credentials\n"
        "# DO NOT COMMIT THIS FILE TO GIT!\n"
        f"GARMIN_EMAIL={email}\n"
        f"GARMIN_PASSWORD={password}\n"
        f"GARTH_HOME={token_store}\n"
        "\n"
        "# Analysis settings\n"
        f"WORKOUTANALYTICS_DURATION_TOLERANCE={tolerance}\n"
        f"WORKOUTANALYTICS_LOG_LEVEL={log_level}\n",
        encoding="utf-8",
    )
    env_path.chmod(0o600)

    print("\n✅ .env file created successfully!")
    print(f"   Location: {env_path.absolute()}")

    _ensure_gitignored(Path(".gitignore"))

    print("\n💡 Usage:")
    print("   workoutanalytics whoami")
    print("   workoutanalytics best-power <workout-id> --durations 5 60 300")


def main() -> int:
    create_env_file()
    return 0


if __name__ == "__main__":
    main()
