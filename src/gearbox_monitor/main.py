"""
Interfaz web del banco (Streamlit).

    streamlit run src/gearbox_monitor/main.py

Streamlit ejecuta este archivo como script, sin el paquete instalado, asi que
primero se agrega "src" al sys.path.
"""

import sys
from pathlib import Path

SRC = Path(__file__).resolve().parent.parent

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from gearbox_monitor.config.settings import SETTINGS, setup_logging  # noqa: E402
from gearbox_monitor.view.vista_streamlit import iniciar  # noqa: E402


def main() -> None:
    setup_logging(SETTINGS.nivel_log)
    iniciar()


main()
