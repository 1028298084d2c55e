# main.py
""""" Entry point for the expression engine console.

   Responsibilities:
   - Verify required files exist when running from a source checkout
   - Hand the command line over to ExprEngine.Console

"""""
import sys
from pathlib import Path

from ExprEngine import Console


PROJECT_ROOT = Path(__file__).resolve().parent


def check_files_exist():

    """
      Fail fast if engine modules or config.json are missing / moved / renamed.
    """

    modules_dir = PROJECT_ROOT / "ExprEngine"

    REQUIRED = [
        modules_dir / "MathEngine.py",
        modules_dir / "ScientificEngine.py",
        modules_dir / "Solver.py",
        modules_dir / "config_manager.py",
        PROJECT_ROOT / "config.json",
    ]

    missing_files = []
    for file_path in REQUIRED:
        if not file_path.exists():
            missing_files.append(file_path.name)

    if missing_files:
        print("Error: The following files are missing or in the wrong location:")
        for file_name in missing_files:
            print(f"- {file_name}")
        sys.exit(1)


def main():
    check_files_exist()
    # Keep this thin: no business logic here.
    return Console.main()


if __name__ == "__main__":
    sys.exit(main())
