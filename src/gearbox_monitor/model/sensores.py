"""
Sensores del banco de ensayo

Este archivo define los sensores que lee el Microcontrolador en cada ciclo:
- CeldaCarga: promedia N lecturas del amplificador de la celda (kg equivalentes).
- SensorPotencia: INA219 (voltaje de bus, voltaje de shunt, corriente).

Cada sensor delega la lectura en un "dispositivo":
- Dispositivos reales (I2C): se importan sus librerias solo al conectar.
- Dispositivos simulados: permiten correr el banco completo sin hardware.
"""

import logging
import random

logger = logging.getLogger(__name__)


# ============================================================
# 1) DISPOSITIVOS REALES
# ============================================================

class AmplificadorCeldaI2C:
    """
    Amplificador de celda de carga (tipo HX711 con adaptador I2C).

    Entrega 24 bits con signo, big-endian; se convierte a kg con tara y factor de calibracion.
    """

    def __init__(self, bus: int, direccion: int, factor_kg: float, tara: int = 0):
        self.bus = bus
        self.direccion = direccion
        self.factor_kg = factor_kg
        self.tara = tara
        self._smbus = None

    def conectar(self) -> None:
        try:
            from smbus2 import SMBus
        except ImportError as e:
            raise ImportError("Falta instalar smbus2. Ejecuta: pip install gearbox-monitor[rpi]") from e

        self._smbus = SMBus(self.bus)

    def cerrar(self) -> None:
        if self._smbus is not None:
            self._smbus.close()
            self._smbus = None

    def leer_kg(self) -> float:
        if self._smbus is None:
            raise RuntimeError("Celda no conectada. Llama primero a conectar().")

        data = self._smbus.read_i2c_block_data(self.direccion, 0, 4)
        crudo = int.from_bytes(bytes(data[:3]), byteorder="big", signed=True)
        return (crudo - self.tara) * self.factor_kg


class INA219Adafruit:
    """
    INA219 via la libreria de Adafruit (CircuitPython / Blinka).

    Unidades de la libreria: bus_voltage [V], shunt_voltage [V], current [mA].
    """

    def __init__(self, direccion: int = 0x40):
        self.direccion = direccion
        self._ina = None
        self._i2c = None

    def conectar(self) -> bool:
        """
        Intenta abrir el INA219. Retorna False si el chip no responde.
        """
        try:
            import board
            import adafruit_ina219
        except ImportError as e:
            raise ImportError(
                "Falta instalar adafruit-circuitpython-ina219. Ejecuta: pip install gearbox-monitor[rpi]"
            ) from e

        try:
            self._i2c = board.I2C()
            self._ina = adafruit_ina219.INA219(self._i2c, addr=self.direccion)
        except (ValueError, OSError, RuntimeError) as e:
            logger.debug("INA219 no responde en 0x%02X: %s", self.direccion, e)
            self._ina = None
            return False

        return True

    def cerrar(self) -> None:
        if self._i2c is not None:
            self._i2c.deinit()
        self._i2c = None
        self._ina = None

    def leer_bus_v(self) -> float:
        return float(self._ina.bus_voltage)

    def leer_shunt_mv(self) -> float:
        return float(self._ina.shunt_voltage) * 1000.0

    def leer_corriente_ma(self) -> float:
        return float(self._ina.current)


# ============================================================
# 2) DISPOSITIVOS SIMULADOS
# ============================================================

class CeldaSimulada:
    """
    Celda simulada: la carga crece con la velocidad del motor, mas ruido uniforme.

    rpm: funcion sin argumentos que devuelve la RPM actual del motor.
    """

    def __init__(self, rpm=lambda: 0, masa_base_kg: float = 0.2, kg_por_rpm: float = 0.0002, ruido_kg: float = 0.005):
        self.rpm = rpm
        self.masa_base_kg = float(masa_base_kg)
        self.kg_por_rpm = float(kg_por_rpm)
        self.ruido_kg = float(ruido_kg)

    def leer_kg(self) -> float:
        masa = self.masa_base_kg + self.kg_por_rpm * self.rpm()
        return masa + random.uniform(-self.ruido_kg, self.ruido_kg)


class PotenciaSimulada:
    """
    INA219 simulado: bus de 12 V, shunt de 0.1 ohm, corriente proporcional a la velocidad.

    presente=False simula un chip ausente (conectar() retorna False).
    """

    def __init__(
        self,
        rpm=lambda: 0,
        bus_v: float = 12.0,
        shunt_ohm: float = 0.1,
        corriente_base_ma: float = 150.0,
        ma_por_rpm: float = 0.4,
        ruido_ma: float = 5.0,
        presente: bool = True,
    ):
        self.rpm = rpm
        self.bus_v = float(bus_v)
        self.shunt_ohm = float(shunt_ohm)
        self.corriente_base_ma = float(corriente_base_ma)
        self.ma_por_rpm = float(ma_por_rpm)
        self.ruido_ma = float(ruido_ma)
        self.presente = presente

    def conectar(self) -> bool:
        return self.presente

    def leer_bus_v(self) -> float:
        return self.bus_v

    def leer_shunt_mv(self) -> float:
        return self.leer_corriente_ma() * self.shunt_ohm

    def leer_corriente_ma(self) -> float:
        corriente = self.corriente_base_ma + self.ma_por_rpm * self.rpm()
        return corriente + random.uniform(-self.ruido_ma, self.ruido_ma)


# ============================================================
# 3) SENSORES (lo que usa el Microcontrolador)
# ============================================================

class CeldaCarga:
    """
    Celda de carga: promedia un numero fijo de lecturas del dispositivo.
    """

    def __init__(self, dispositivo, muestras: int = 5):
        if muestras < 1:
            raise ValueError("muestras debe ser >= 1")

        self.dispositivo = dispositivo
        self.muestras = int(muestras)

    def leer_kg(self) -> float:
        total = 0.0
        for _ in range(self.muestras):
            total += self.dispositivo.leer_kg()
        return total / self.muestras

    def cerrar(self) -> None:
        if hasattr(self.dispositivo, "cerrar"):
            self.dispositivo.cerrar()


class SensorPotencia:
    """
    Sensor de potencia (INA219).

    Si el chip no aparece al iniciar, el banco sigue corriendo y las lecturas
    del sensor sin configurar se reportan como 0.
    """

    def __init__(self, dispositivo):
        self.dispositivo = dispositivo
        self.presente = False

    def iniciar(self) -> bool:
        self.presente = bool(self.dispositivo.conectar())
        return self.presente

    def leer_bus_v(self) -> float:
        return self.dispositivo.leer_bus_v() if self.presente else 0.0

    def leer_shunt_mv(self) -> float:
        return self.dispositivo.leer_shunt_mv() if self.presente else 0.0

    def leer_corriente_ma(self) -> float:
        return self.dispositivo.leer_corriente_ma() if self.presente else 0.0

    def cerrar(self) -> None:
        if hasattr(self.dispositivo, "cerrar"):
            self.dispositivo.cerrar()
        self.presente = False
