"""
colector.py
===========

OBJETIVO
--------
Capturar lo que envia el banco de reductores (serial o simulado), guardarlo en CSV
y mantener actualizados los graficos del ensayo.

FLUJO DE USO
------------
1) Conectar el banco por USB (o usar --simulado para probar sin hardware).
2) Ejecutar:
      gearbox-colector --puerto /dev/ttyACM0 --rpm 600
3) El colector:
   - Abre el puerto y el CSV de salida (encabezado MotorRPM,GearboxRPM,...)
   - Envia la velocidad inicial si se indico --rpm
   - Guarda cada registro valido (las lineas invalidas se descartan)
   - Regenera los graficos cada N registros (PNG)
   - Con Ctrl+C cierra puerto y CSV y guarda la imagen final

IMPORTANTE
----------
- El colector NO controla la velocidad: solo envia el valor pedido.
- La eficiencia y demas magnitudes vienen calculadas desde el banco.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from gearbox_monitor.config.settings import SETTINGS, Settings, setup_logging
from gearbox_monitor.controller.controller import ConfigEnsayo, EstadoController, GearboxController
from gearbox_monitor.controller.fuentes import FuenteCSV, FuenteSerialBanco, FuenteSimulada
from gearbox_monitor.view.graficos import GraficosBanco

logger = logging.getLogger(__name__)


# ============================================================
# 1) ARGUMENTOS
# ============================================================

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Colector de registros del banco de reductores.")
    origen = parser.add_mutually_exclusive_group()
    origen.add_argument("--puerto", default=None, help="Puerto serial del banco")
    origen.add_argument("--simulado", action="store_true", help="Banco simulado en proceso")
    origen.add_argument("--reproducir", default=None, help="Reproducir un CSV guardado")
    parser.add_argument("--baudrate", type=int, default=None)
    parser.add_argument("--rpm", type=int, default=None, help="Velocidad inicial del motor (100..1200)")
    parser.add_argument("--salida", default=None, help="CSV de salida (por defecto con timestamp)")
    parser.add_argument("--png", default=None, help="Imagen final de los graficos")
    parser.add_argument("--cada", type=int, default=None, help="Regenerar graficos cada N registros")
    parser.add_argument("--config", default=None, help="JSON con overrides de Settings")
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


# ============================================================
# 2) FUENTE Y RUTAS
# ============================================================

def crear_fuente(args, settings: Settings):
    if args.simulado:
        return FuenteSimulada(settings=settings)

    if args.reproducir:
        return FuenteCSV(args.reproducir)

    return FuenteSerialBanco(
        puerto=args.puerto or settings.puerto_serial,
        baudrate=args.baudrate or settings.baudrate,
        timeout_s=settings.timeout_s,
        settings=settings,
    )


def rutas_salida(args, settings: Settings):
    """CSV y PNG de salida. Sin --salida se usa la carpeta de Settings con timestamp."""
    if args.salida:
        ruta_csv = Path(args.salida)
    else:
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        ruta_csv = Path(settings.ruta_csv).parent / f"ensayo_{timestamp}.csv"

    ruta_png = Path(args.png) if args.png else ruta_csv.with_suffix(".png")
    return ruta_csv, ruta_png


# ============================================================
# 3) MAIN
# ============================================================

def main(argv=None) -> int:
    args = parse_args(argv)

    settings = Settings.desde_json(args.config) if args.config else SETTINGS
    setup_logging(args.log_level or settings.nivel_log)

    ruta_csv, ruta_png = rutas_salida(args, settings)

    cfg = ConfigEnsayo(
        rpm_inicial=args.rpm,
        ruta_csv=str(ruta_csv),
        ruta_png=str(ruta_png),
        graficar_cada_n=args.cada or settings.graficar_cada_n,
    )

    ctrl = GearboxController(crear_fuente(args, settings), graficos=GraficosBanco(), settings=settings)

    logger.info("Capturando en %s (Ctrl+C para terminar)", ruta_csv)
    ctrl.ejecutar(cfg)

    if ctrl.get_estado() == EstadoController.ERROR:
        logger.error("El ensayo no pudo iniciar: %s", ctrl.get_error_msg())
        return 1

    logger.info("Filas guardadas: %d", len(ctrl.get_historial()))
    logger.info("CSV generado: %s", ctrl.get_ultimo_csv_path())
    logger.info("Grafico final: %s", ctrl.get_ultimo_png_path())
    return 0


if __name__ == "__main__":
    sys.exit(main())
