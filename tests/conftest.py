import logging
import os
from dataclasses import replace

import pytest

from gearbox_monitor.config.settings import SETTINGS
from gearbox_monitor.model.comandos import CanalMemoria
from gearbox_monitor.model.microcontrolador import Microcontrolador, MotorPasos, PinSimulado
from gearbox_monitor.model.sensores import CeldaCarga, SensorPotencia


class CeldaFija:
    """Dispositivo de celda que devuelve valores fijos (o una secuencia)."""

    def __init__(self, *valores_kg):
        self.valores = list(valores_kg) or [0.0]
        self.lecturas = 0

    def leer_kg(self):
        valor = self.valores[self.lecturas % len(self.valores)]
        self.lecturas += 1
        return valor


class PotenciaFija:
    def __init__(self, bus_v=12.0, shunt_mv=0.0, corriente_ma=1000.0, presente=True):
        self.bus_v = bus_v
        self.shunt_mv = shunt_mv
        self.corriente_ma = corriente_ma
        self.presente = presente

    def conectar(self):
        return self.presente

    def leer_bus_v(self):
        return self.bus_v

    def leer_shunt_mv(self):
        return self.shunt_mv

    def leer_corriente_ma(self):
        return self.corriente_ma


class EsperaFalsa:
    """Reemplaza la espera activa: solo registra los retardos pedidos."""

    def __init__(self):
        self.retardos = []

    def __call__(self, us):
        self.retardos.append(us)


@pytest.fixture
def settings():
    return replace(SETTINGS, radio_brazo_m=0.1, muestras_celda=5)


@pytest.fixture
def canal():
    return CanalMemoria()


@pytest.fixture
def espera():
    return EsperaFalsa()


@pytest.fixture
def armar_banco(settings, canal, espera):
    """Fabrica de Microcontrolador con dispositivos fijos."""

    def _armar(celda=None, potencia=None, iniciar=True):
        motor = MotorPasos(PinSimulado(5), PinSimulado(6), PinSimulado(13), esperar=espera)
        mcu = Microcontrolador(
            motor,
            CeldaCarga(celda or CeldaFija(1.0), muestras=settings.muestras_celda),
            SensorPotencia(potencia or PotenciaFija()),
            canal,
            settings,
        )
        if iniciar:
            mcu.iniciar()
        return mcu

    return _armar


@pytest.fixture
def tuberia():
    """Par (lector, escritor) de un pipe del sistema operativo."""
    r, w = os.pipe()
    lector = os.fdopen(r, "r")
    escritor = os.fdopen(w, "w")
    yield lector, escritor
    lector.close()
    if not escritor.closed:
        escritor.close()


@pytest.fixture
def restaurar_logging():
    """Para tests que llaman setup_logging(): deja el logging raiz como estaba."""
    raiz = logging.getLogger()
    handlers, nivel = list(raiz.handlers), raiz.level
    yield
    for handler in list(raiz.handlers):
        if handler not in handlers:
            raiz.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in raiz.handlers:
            raiz.addHandler(handler)
    raiz.setLevel(nivel)
