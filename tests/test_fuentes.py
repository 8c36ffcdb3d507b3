import pytest

from conftest import EsperaFalsa
from gearbox_monitor.controller.fuentes import FuenteCSV, FuenteSerialBanco, FuenteSimulada, validar_rpm
from gearbox_monitor.model.almacenamiento import RegistroCSV
from gearbox_monitor.model.microcontrolador import MENSAJE_SIN_INA219
from gearbox_monitor.model.muestra import MedicionBanco


class SerialFalso:
    """Imita lo minimo de serial.Serial que usa FuenteSerialBanco."""

    def __init__(self, lineas=()):
        self.lineas = list(lineas)
        self.escrito = []
        self.is_open = True

    def readline(self):
        return self.lineas.pop(0) if self.lineas else b""

    def write(self, data):
        self.escrito.append(data)

    def close(self):
        self.is_open = False


def _fuente_serial(lineas=()):
    fuente = FuenteSerialBanco("/dev/null")
    fuente._ser = SerialFalso(lineas)
    return fuente


def test_validar_rpm():
    assert validar_rpm("600") == 600
    with pytest.raises(ValueError):
        validar_rpm(99)
    with pytest.raises(ValueError):
        validar_rpm(1201)


def test_serial_lee_lineas_y_timeout():
    fuente = _fuente_serial([b"600,40.00,1.000,0.100,5.000,0.419,8.378\r\n"])

    assert fuente.leer_linea() == "600,40.00,1.000,0.100,5.000,0.419,8.378"
    with pytest.raises(TimeoutError):
        fuente.leer_linea()


def test_serial_envia_velocidad():
    fuente = _fuente_serial()
    fuente.enviar_velocidad(600)

    assert fuente._ser.escrito == [b"600\n"]

    with pytest.raises(ValueError):
        fuente.enviar_velocidad(50)
    assert fuente._ser.escrito == [b"600\n"]


def test_serial_sin_conectar():
    fuente = FuenteSerialBanco("/dev/null")

    with pytest.raises(RuntimeError):
        fuente.leer_linea()
    with pytest.raises(RuntimeError):
        fuente.enviar_velocidad(600)

    fuente.cerrar()


def test_serial_cerrar():
    fuente = _fuente_serial()
    fuente.cerrar()

    assert fuente._ser.is_open is False


def test_simulada_emite_registros_y_acepta_velocidad():
    fuente = FuenteSimulada(esperar=EsperaFalsa())
    fuente.enviar_velocidad(900)

    linea = fuente.leer_linea()

    assert linea.split(",")[:2] == ["900", "60.00"]
    assert fuente.mcu.motor.pasos == 1

    with pytest.raises(ValueError):
        fuente.enviar_velocidad(2000)


def test_simulada_sin_ina219_entrega_primero_el_mensaje_de_arranque():
    fuente = FuenteSimulada(potencia_presente=False, esperar=EsperaFalsa())

    assert fuente.leer_linea() == MENSAJE_SIN_INA219
    assert fuente.leer_linea().split(",")[-1] == "0.000"
    fuente.cerrar()


def test_csv_reproduce_filas_y_se_agota(tmp_path):
    ruta = tmp_path / "ensayo.csv"
    with RegistroCSV(str(ruta)) as registro:
        registro.agregar(MedicionBanco(600, 40.0, 1.0, 0.1, 5.0, 0.419, 8.378))
        registro.agregar(MedicionBanco(300, 20.0, 1.0, 0.1, 5.0, 0.209, 4.189))

    fuente = FuenteCSV(str(ruta))
    fuente.conectar()

    assert fuente.leer_linea() == "600,40.00,1.000,0.100,5.000,0.419,8.378"
    assert fuente.leer_linea().startswith("300,20.00")
    with pytest.raises(StopIteration):
        fuente.leer_linea()

    # Reconectar vuelve al inicio
    fuente.conectar()
    assert fuente.leer_linea().startswith("600,")
    fuente.cerrar()


def test_csv_inexistente(tmp_path):
    with pytest.raises(FileNotFoundError):
        FuenteCSV(str(tmp_path / "no_existe.csv"))
