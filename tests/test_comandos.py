import io

import pytest

from gearbox_monitor.model.comandos import CanalConsola, CanalMemoria, CanalSerial, interpretar_comando


@pytest.mark.parametrize(
    "texto, esperado",
    [
        ("600\n", 600),
        ("  1200\r\n", 1200),
        ("rpm=900", 900),
        ("750.5", 750),
        ("-50", -50),
        ("12 34", 12),
        ("abc", None),
        ("", None),
    ],
)
def test_interpretar_comando(texto, esperado):
    assert interpretar_comando(texto) == esperado


def test_canal_memoria():
    canal = CanalMemoria()
    assert not canal.disponible()

    canal.enviar("600\n")
    canal.enviar("700\n")
    assert canal.disponible()
    assert canal.leer_disponible() == "600\n700\n"
    assert not canal.disponible()

    canal.escribir_linea("a")
    canal.escribir_linea("b")
    assert canal.sacar_linea() == "a"
    assert canal.sacar_linea() == "b"
    assert canal.sacar_linea() is None


def test_canal_consola_lee_todo_lo_disponible(tuberia):
    lector, escritor = tuberia
    salida = io.StringIO()
    canal = CanalConsola(entrada=lector, salida=salida)

    assert not canal.disponible()

    escritor.write("800\n900\n")
    escritor.flush()

    assert canal.disponible()
    assert canal.leer_disponible() == "800\n900\n"
    assert not canal.disponible()


def test_canal_consola_escribe_lineas(tuberia):
    lector, _ = tuberia
    salida = io.StringIO()
    canal = CanalConsola(entrada=lector, salida=salida)

    canal.escribir_linea("600,40.00,1.000,0.100,5.000,0.419,8.378")

    assert salida.getvalue() == "600,40.00,1.000,0.100,5.000,0.419,8.378\n"


class PuertoFalso:
    """Imita lo minimo de serial.Serial que usa CanalSerial."""

    def __init__(self, entrada=b""):
        self.entrada = bytearray(entrada)
        self.escrito = []
        self.is_open = True

    @property
    def in_waiting(self):
        return len(self.entrada)

    def read(self, n):
        datos = bytes(self.entrada[:n])
        del self.entrada[:n]
        return datos

    def write(self, data):
        self.escrito.append(data)

    def close(self):
        self.is_open = False


def test_canal_serial_consume_todo_el_buffer():
    canal = CanalSerial("/dev/ttyGS0")
    canal._ser = PuertoFalso(b"700\n800\n")

    assert canal.disponible()
    assert canal.leer_disponible() == "700\n800\n"
    assert not canal.disponible()


def test_canal_serial_escribe_lineas_terminadas_en_salto():
    canal = CanalSerial("/dev/ttyGS0")
    canal._ser = PuertoFalso()

    canal.escribir_linea("600,40.00,1.000,0.100,5.000,0.419,8.378")

    assert canal._ser.escrito == [b"600,40.00,1.000,0.100,5.000,0.419,8.378\n"]

    canal.cerrar()
    assert canal._ser.is_open is False


def test_canal_serial_sin_conectar():
    canal = CanalSerial("/dev/ttyGS0")

    with pytest.raises(RuntimeError):
        canal.disponible()
    with pytest.raises(RuntimeError):
        canal.leer_disponible()
    with pytest.raises(RuntimeError):
        canal.escribir_linea("x")

    canal.cerrar()
