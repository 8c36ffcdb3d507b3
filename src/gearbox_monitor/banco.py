"""
banco.py
========

Programa que corre EN el banco de ensayo (Raspberry Pi) o simulado en el PC.

- Lee comandos de velocidad (enteros 100..1200) por stdin o por un puerto serial.
- En cada ciclo emite un registro de 7 campos y un paso del motor.
- Corre hasta que se corta (Ctrl+C / apagado). Al salir deshabilita el driver.

Uso:
    gearbox-banco                         # simulado, stdin/stdout
    gearbox-banco --hardware              # GPIO + INA219 + celda I2C, stdin/stdout
    gearbox-banco --hardware --serial /dev/ttyGS0

El log va a stderr: stdout transporta los registros.
"""

import argparse
import logging
import sys

from gearbox_monitor.config.settings import SETTINGS, Settings, setup_logging
from gearbox_monitor.model.comandos import CanalConsola, CanalSerial
from gearbox_monitor.model.microcontrolador import Microcontrolador, MotorPasos, PinGPIO, construir_banco_simulado
from gearbox_monitor.model.sensores import AmplificadorCeldaI2C, CeldaCarga, INA219Adafruit, SensorPotencia

logger = logging.getLogger(__name__)


def construir_banco(settings: Settings, canal, hardware: bool = False) -> Microcontrolador:
    """
    Arma el Microcontrolador con dispositivos reales o simulados.
    """
    if hardware:
        motor = MotorPasos(
            PinGPIO(settings.pin_pulso),
            PinGPIO(settings.pin_direccion),
            PinGPIO(settings.pin_habilitar),
        )

        amplificador = AmplificadorCeldaI2C(
            settings.i2c_bus,
            settings.direccion_celda,
            settings.factor_celda,
            settings.tara_celda,
        )
        amplificador.conectar()

        celda = CeldaCarga(amplificador, muestras=settings.muestras_celda)
        potencia = SensorPotencia(INA219Adafruit(settings.direccion_ina219))
        return Microcontrolador(motor, celda, potencia, canal, settings)

    return construir_banco_simulado(canal, settings)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Ciclo de medicion y control del banco de reductores.")
    parser.add_argument("--hardware", action="store_true", help="Usar GPIO, INA219 y celda I2C reales")
    parser.add_argument("--serial", default=None, help="Puerto serial para comandos y registros (por defecto stdin/stdout)")
    parser.add_argument("--baudrate", type=int, default=None)
    parser.add_argument("--config", default=None, help="JSON con calibracion del banco")
    parser.add_argument("--ciclos", type=int, default=None, help="Cantidad de ciclos (por defecto, infinito)")
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    settings = Settings.desde_json(args.config) if args.config else SETTINGS
    setup_logging(args.log_level or settings.nivel_log, flujo=sys.stderr)

    if args.serial:
        canal = CanalSerial(args.serial, args.baudrate or settings.baudrate)
        canal.conectar()
    else:
        canal = CanalConsola()

    mcu = construir_banco(settings, canal, hardware=args.hardware)
    mcu.iniciar()
    logger.info("Banco iniciado a %d RPM", mcu.estado.rpm_objetivo)

    try:
        mcu.ejecutar(args.ciclos)
    except KeyboardInterrupt:
        logger.info("Banco detenido")
    finally:
        mcu.detener()
        if isinstance(canal, CanalSerial):
            canal.cerrar()

    return 0


if __name__ == "__main__":
    sys.exit(main())
