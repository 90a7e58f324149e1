"""Development entry point: ``python app.py`` or ``flask --app app run``."""

import sys
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent / "src" / "employee_records"
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

from employee_records.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config["DEBUG"])
