"""
Microcontrolador del banco de ensayo

Este modulo representa la unidad que corre en el banco (Raspberry Pi o simulacion).

El microcontrolador es responsable de:
- Recibir comandos de velocidad (RPM del motor)
- Recalcular la temporizacion del motor paso a paso
- Leer la celda de carga y el INA219
- Emitir un registro de texto por ciclo
- Generar un paso del motor por ciclo (espera activa en dos fases)

El ciclo es sincrono y bloqueante. La latencia propia del ciclo (lecturas, formato, E/S)
se suma al periodo nominal del pulso: la velocidad real es aproximada. Un periodo exacto
requiere un temporizador por hardware, no se emula con hilos.
"""

import logging
import time

from gearbox_monitor.config.settings import SETTINGS, Settings
from gearbox_monitor.model import ecuaciones as eq
from gearbox_monitor.model.comandos import interpretar_comando
from gearbox_monitor.model.modelo import Modelo
from gearbox_monitor.model.muestra import EstadoBanco, LecturaSensores, MedicionBanco
from gearbox_monitor.model.sensores import CeldaCarga, CeldaSimulada, PotenciaSimulada, SensorPotencia

logger = logging.getLogger(__name__)

ALTO = 1
BAJO = 0

MENSAJE_SIN_INA219 = "No se encontro el chip INA219"


def esperar_us(us: int) -> None:
    """Espera activa de `us` microsegundos."""
    fin = time.perf_counter_ns() + int(us) * 1000
    while time.perf_counter_ns() < fin:
        pass


# ============================================================
# Pines digitales
# ============================================================

class PinGPIO:
    """
    Salida digital del Raspberry Pi (RPi.GPIO, numeracion BCM).
    """

    def __init__(self, numero: int):
        self.numero = numero
        self._gpio = None

    def configurar(self, nivel_inicial: int = BAJO) -> None:
        try:
            import RPi.GPIO as GPIO
        except ImportError as e:
            raise ImportError("Falta instalar RPi.GPIO. Ejecuta: pip install gearbox-monitor[rpi]") from e

        GPIO.setmode(GPIO.BCM)
        GPIO.setwarnings(False)
        GPIO.setup(self.numero, GPIO.OUT)
        self._gpio = GPIO
        self.escribir(nivel_inicial)

    def escribir(self, nivel: int) -> None:
        self._gpio.output(self.numero, self._gpio.HIGH if nivel else self._gpio.LOW)

    def liberar(self) -> None:
        if self._gpio is not None:
            self._gpio.cleanup(self.numero)


class PinSimulado:
    """
    Pin que solo registra los niveles escritos (simulacion y pruebas).
    """

    def __init__(self, numero: int = 0):
        self.numero = numero
        self.nivel = BAJO
        self.flancos = []

    def configurar(self, nivel_inicial: int = BAJO) -> None:
        self.nivel = nivel_inicial

    def escribir(self, nivel: int) -> None:
        self.nivel = nivel
        self.flancos.append(nivel)

    def liberar(self) -> None:
        pass


# ============================================================
# Motor paso a paso
# ============================================================

class MotorPasos:
    """
    Driver de motor paso a paso (STEP / DIR / EN).

    - El sentido de giro es fijo.
    - EN es activo en bajo (A4988 / DRV8825).
    """

    def __init__(self, pin_pulso, pin_direccion, pin_habilitar, esperar=esperar_us):
        self.pin_pulso = pin_pulso
        self.pin_direccion = pin_direccion
        self.pin_habilitar = pin_habilitar
        self.esperar = esperar
        self.pasos = 0

    def iniciar(self) -> None:
        self.pin_pulso.configurar(BAJO)
        self.pin_direccion.configurar(ALTO)
        self.pin_habilitar.configurar(BAJO)

    def paso(self, retardo_us: int) -> None:
        """
        Un paso: pulso alto, espera, pulso bajo, espera (mismo retardo en ambas fases).
        """
        self.pin_pulso.escribir(ALTO)
        self.esperar(retardo_us)
        self.pin_pulso.escribir(BAJO)
        self.esperar(retardo_us)
        self.pasos += 1

    def detener(self) -> None:
        self.pin_pulso.escribir(BAJO)
        self.pin_habilitar.escribir(ALTO)
        for pin in (self.pin_pulso, self.pin_direccion, self.pin_habilitar):
            pin.liberar()


# ============================================================
# Microcontrolador (ciclo de medicion y control)
# ============================================================

class Microcontrolador:
    """
    Ciclo de medicion y control del banco.

    canal: objeto con disponible(), leer_disponible() y escribir_linea() (ver comandos.py).
    """

    def __init__(self, motor: MotorPasos, celda, potencia, canal, settings: Settings = SETTINGS):
        self.motor = motor
        self.celda = celda
        self.potencia = potencia
        self.canal = canal
        self.settings = settings
        self.modelo = Modelo(settings)

        self.estado = EstadoBanco(rpm_objetivo=int(settings.rpm_inicial))

    def iniciar(self) -> None:
        """
        Configura pines y sensores. Si el INA219 no responde se informa y se sigue.
        """
        self.motor.iniciar()

        if not self.potencia.iniciar():
            logger.error(MENSAJE_SIN_INA219)
            self.canal.escribir_linea(MENSAJE_SIN_INA219)

    def detener(self) -> None:
        """Deshabilita el driver y libera los buses de los sensores."""
        self.motor.detener()
        self.celda.cerrar()
        self.potencia.cerrar()

    # ----------------------------
    # Pasos del ciclo
    # ----------------------------

    def recibir_comando(self) -> bool:
        """
        Acepta un comando de velocidad si hay texto disponible.

        Se consume todo el buffer: solo cuenta el primer entero, el resto se descarta.
        Retorna True si la velocidad objetivo cambio.
        """
        if not self.canal.disponible():
            return False

        texto = self.canal.leer_disponible()
        rpm = interpretar_comando(texto)

        if rpm is None or rpm < self.settings.rpm_min or rpm > self.settings.rpm_max:
            logger.debug("Comando ignorado: %r", texto)
            return False

        self.estado.rpm_objetivo = rpm
        self.estado.cambio_pendiente = True
        logger.info("Nueva velocidad objetivo: %d RPM", rpm)
        return True

    def actualizar_temporizacion(self) -> None:
        if not self.estado.cambio_pendiente:
            return

        self.estado.retardo_us = eq.retardo_us(
            self.estado.rpm_objetivo,
            self.settings.pasos_por_vuelta,
            self.settings.micropasos,
        )
        self.estado.cambio_pendiente = False
        logger.debug("Retardo entre flancos: %d us", self.estado.retardo_us)

    def leer_sensores(self) -> LecturaSensores:
        return LecturaSensores(
            masa_kg=self.celda.leer_kg(),
            bus_v=self.potencia.leer_bus_v(),
            shunt_mv=self.potencia.leer_shunt_mv(),
            corriente_ma=self.potencia.leer_corriente_ma(),
        )

    def ciclo(self) -> MedicionBanco:
        """
        Una iteracion completa: comando, temporizacion, sensores, registro y un paso.
        """
        self.recibir_comando()
        self.actualizar_temporizacion()

        medicion = self.modelo.procesar(self.estado.rpm_objetivo, self.leer_sensores())
        self.canal.escribir_linea(medicion.a_linea())

        self.motor.paso(self.estado.retardo_us)
        return medicion

    def ejecutar(self, ciclos=None) -> None:
        """
        Corre el ciclo indefinidamente (o `ciclos` veces). No hay cancelacion propia:
        se corta con una interrupcion externa.
        """
        n = 0
        while ciclos is None or n < ciclos:
            self.ciclo()
            n += 1


# ============================================================
# Banco simulado (sin hardware)
# ============================================================

def construir_banco_simulado(canal, settings: Settings = SETTINGS, potencia_presente: bool = True, esperar=esperar_us) -> Microcontrolador:
    """
    Microcontrolador con pines y sensores simulados.

    Los sensores simulados siguen la velocidad objetivo del propio banco.
    """
    motor = MotorPasos(
        PinSimulado(settings.pin_pulso),
        PinSimulado(settings.pin_direccion),
        PinSimulado(settings.pin_habilitar),
        esperar=esperar,
    )

    mcu = None
    rpm_actual = lambda: mcu.estado.rpm_objetivo if mcu is not None else settings.rpm_inicial

    celda = CeldaCarga(CeldaSimulada(rpm=rpm_actual), muestras=settings.muestras_celda)
    potencia = SensorPotencia(PotenciaSimulada(rpm=rpm_actual, presente=potencia_presente))

    mcu = Microcontrolador(motor, celda, potencia, canal, settings)
    return mcu
