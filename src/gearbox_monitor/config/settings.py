"""
Configuracion central del proyecto Gearbox Monitor.

Idea:
- Aqui van los parametros fijos del banco (mecanica, sensores, pines, limites de comando).
- El Microcontrolador usa estos valores para temporizar el motor y derivar magnitudes.
- El Controller (colector) y la View leen rutas de salida y limites de velocidad.
- Cada banco puede cargar su calibracion desde un JSON (Settings.desde_json).
"""

import json
import logging
import sys
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Settings:
    # -------------------------------
    # Puertos / comunicacion (banco <-> PC)
    # -------------------------------
    puerto_serial: str = "/dev/ttyACM0"  # puerto serial del banco
    baudrate: int = 115200               # velocidad serial (debe coincidir con el banco)
    timeout_s: float = 1.0               # timeout de lectura serial (segundos)

    # -------------------------------
    # Comando de velocidad (RPM del motor)
    # -------------------------------
    rpm_min: int = 100
    rpm_max: int = 1200
    rpm_inicial: int = 600               # velocidad al arrancar, antes de recibir comandos

    # -------------------------------
    # Mecanica del banco
    # -------------------------------
    pasos_por_vuelta: int = 200          # motor paso a paso de 1.8 deg
    micropasos: int = 1                  # factor de micropaso del driver
    relacion_reductor: float = 15.0      # RPM motor / RPM salida
    radio_brazo_m: float = 0.05          # brazo de palanca de la celda de carga (m)
    gravedad: float = 9.81               # m/s^2

    # -------------------------------
    # Celda de carga (amplificador via I2C)
    # -------------------------------
    muestras_celda: int = 5              # promedio por lectura
    factor_celda: float = 1.0e-6         # kg por cuenta del ADC (calibrar)
    tara_celda: int = 0                  # cuentas con el brazo descargado
    i2c_bus: int = 1
    direccion_celda: int = 0x2A

    # -------------------------------
    # Sensor de potencia INA219
    # -------------------------------
    direccion_ina219: int = 0x40
    umbral_potencia_w: float = 0.5       # bajo este valor la eficiencia se reporta 0

    # -------------------------------
    # Pines GPIO (numeracion BCM)
    # -------------------------------
    pin_pulso: int = 5
    pin_direccion: int = 6
    pin_habilitar: int = 13              # activo en bajo

    # -------------------------------
    # Colector (PC)
    # -------------------------------
    graficar_cada_n: int = 10            # regenerar graficos cada N registros aceptados
    ruta_csv: str = "salidas/ensayo.csv"
    ruta_png: str = "salidas/ensayo.png"

    # -------------------------------
    # Logging
    # -------------------------------
    nivel_log: str = "INFO"

    @classmethod
    def desde_json(cls, ruta: str, base: Optional["Settings"] = None) -> "Settings":
        """
        Crea Settings a partir de un JSON con overrides (calibracion por banco).

        Solo se aceptan claves que existan en Settings; cualquier otra levanta ValueError.
        """
        base = base if base is not None else cls()

        with open(ruta, "r", encoding="utf-8") as f:
            datos = json.load(f)

        if not isinstance(datos, dict):
            raise ValueError(f"Config invalida en {ruta}: se esperaba un objeto JSON")

        validas = {f.name for f in fields(cls)}
        desconocidas = sorted(set(datos) - validas)
        if desconocidas:
            raise ValueError(f"Claves desconocidas en {ruta}: {', '.join(desconocidas)}")

        return replace(base, **datos)


# Instancia global utilizada por el resto del proyecto
SETTINGS = Settings()


def setup_logging(nivel: str = SETTINGS.nivel_log, archivo: Optional[str] = None, flujo=None) -> logging.Logger:
    """
    Configura el logging de la aplicacion.

    - flujo: stream del handler de consola (stdout por defecto). El banco usa stderr,
      porque su stdout transporta los registros.
    - archivo: si se indica, ademas se escribe un log de la sesion (se reinicia en cada ejecucion).
    """
    handlers = [logging.StreamHandler(flujo if flujo is not None else sys.stdout)]

    if archivo:
        Path(archivo).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(archivo, mode="w", encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, str(nivel).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )

    # Silenciar logs de librerias externas
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)

    return logging.getLogger("gearbox_monitor")
