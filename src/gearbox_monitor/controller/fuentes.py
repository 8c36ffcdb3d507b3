"""
Este modulo define las fuentes de lineas de texto para el colector.

Una fuente entrega lineas crudas tal como las emite el banco, sin decodificar:
- FuenteSerialBanco: lee el puerto serial conectado al banco.
- FuenteSimulada: corre un Microcontrolador en proceso con hardware simulado.
- FuenteCSV: reproduce un registro CSV guardado, fila por fila.

Idea de arquitectura:
- El Controller solo conoce el contrato FuenteDatos.leer_linea().
- Cambiar de origen (banco real, simulacion, reproduccion) no toca al Controller.
- La decodificacion (y el descarte de lineas invalidas) la hace el Controller.
"""

import csv
from pathlib import Path
from typing import Optional, TextIO

from gearbox_monitor.config.settings import SETTINGS, Settings
from gearbox_monitor.model.comandos import CanalMemoria
from gearbox_monitor.model.microcontrolador import construir_banco_simulado
from gearbox_monitor.model.muestra import ENCABEZADO


# ============================================================
# 0) CONTRATO BASE (interfaz)
# ============================================================

class FuenteDatos:
    """
    Interfaz comun de las fuentes de lineas.

    Obligatorio:
    - leer_linea() -> str  (TimeoutError si no llega nada, StopIteration si la fuente se agoto)

    Opcionalmente:
    - conectar() / cerrar() para abrir y liberar puerto o archivo
    - enviar_velocidad() (si la fuente puede comandar el motor)
    """

    def conectar(self) -> None:
        pass

    def cerrar(self) -> None:
        pass

    def leer_linea(self) -> str:
        raise NotImplementedError


def validar_rpm(rpm: int, settings: Settings = SETTINGS) -> int:
    rpm = int(rpm)

    if rpm < settings.rpm_min or rpm > settings.rpm_max:
        raise ValueError(
            f"Velocidad invalida: rpm debe estar entre {settings.rpm_min} y {settings.rpm_max}"
        )

    return rpm


# ============================================================
# 1) FUENTE SERIAL (BANCO REAL)
# ============================================================

class FuenteSerialBanco(FuenteDatos):
    """
    Fuente conectada al banco por puerto Serial.

    Responsabilidad:
    - Entregar las lineas que imprime el banco, una por llamada.
    - Enviar comandos de velocidad ("<rpm>\\n").
    """

    def __init__(self, puerto: str, baudrate: int = 115200, timeout_s: float = 1.0, settings: Settings = SETTINGS):
        self.puerto = puerto
        self.baudrate = baudrate
        self.timeout_s = timeout_s
        self.settings = settings

        # Objeto serial (pyserial), se inicializa en conectar()
        self._ser = None

    # ----------------------------
    # Conexion y cierre
    # ----------------------------

    def conectar(self) -> None:
        """
        Abre el puerto serial.
        """
        try:
            import serial  # pyserial
        except ImportError as e:
            raise ImportError("Falta instalar pyserial. Ejecuta: pip install pyserial") from e

        # Con timeout, readline() vuelve vacio si el banco no emite nada
        self._ser = serial.Serial(self.puerto, self.baudrate, timeout=self.timeout_s)

        # Descarta lo que el banco haya emitido antes de conectar
        self._ser.reset_input_buffer()
        self._ser.reset_output_buffer()

    def cerrar(self) -> None:
        if self._ser is not None and self._ser.is_open:
            self._ser.close()

    # ----------------------------
    # Comandos al banco
    # ----------------------------

    def enviar_velocidad(self, rpm: int) -> None:
        """
        Envia la velocidad objetivo del motor. El rango coincide con el que acepta el banco.
        """
        if self._ser is None:
            raise RuntimeError("Serial no conectado. Llama primero a conectar().")

        rpm = validar_rpm(rpm, self.settings)
        self._ser.write(f"{rpm}\n".encode("utf-8"))

    # ----------------------------
    # Lectura de lineas
    # ----------------------------

    def leer_linea(self) -> str:
        """
        Lee una linea del serial.

        Sin datos dentro del timeout: TimeoutError (el Controller sigue esperando).
        """
        if self._ser is None:
            raise RuntimeError("Serial no conectado. Llama primero a conectar().")

        raw = self._ser.readline()

        if not raw:
            raise TimeoutError("Timeout leyendo del puerto serial (no llego ningun registro).")

        return raw.decode("utf-8", errors="ignore").strip()


# ============================================================
# 2) FUENTE SIMULADA (BANCO EN PROCESO)
# ============================================================

class FuenteSimulada(FuenteDatos):
    """
    Banco completo corriendo en el mismo proceso, con pines y sensores simulados.

    - Los sensores simulados siguen la velocidad comandada.
    - Cada leer_linea() ejecuta un ciclo del banco y retorna lo que emitio.
    - La espera activa del paso es real (a 100 RPM son 6 ms por ciclo).
    """

    def __init__(self, settings: Settings = SETTINGS, potencia_presente: bool = True, esperar=None):
        self.settings = settings
        self.canal = CanalMemoria()

        kwargs = {} if esperar is None else {"esperar": esperar}
        self.mcu = construir_banco_simulado(self.canal, settings, potencia_presente=potencia_presente, **kwargs)
        self._iniciado = False

    def conectar(self) -> None:
        if not self._iniciado:
            self.mcu.iniciar()
            self._iniciado = True

    def cerrar(self) -> None:
        if self._iniciado:
            self.mcu.detener()
            self._iniciado = False

    def enviar_velocidad(self, rpm: int) -> None:
        self.canal.enviar(f"{validar_rpm(rpm, self.settings)}\n")

    def leer_linea(self) -> str:
        self.conectar()

        # Primero lo pendiente (ej. mensaje de arranque), luego un ciclo nuevo
        linea = self.canal.sacar_linea()
        if linea is not None:
            return linea

        self.mcu.ciclo()
        return self.canal.sacar_linea()


# ============================================================
# 3) FUENTE CSV (REPRODUCCION DE UN REGISTRO)
# ============================================================

class FuenteCSV(FuenteDatos):
    """
    Fuente basada en un registro CSV guardado por el colector.

    Espera el encabezado MotorRPM,GearboxRPM,...,Efficiency(%).
    Cada llamada a leer_linea() devuelve la siguiente fila como linea de registro.
    """

    def __init__(self, ruta_csv: str):
        self.ruta_csv = ruta_csv
        self.path = Path(ruta_csv)

        if not self.path.exists():
            raise FileNotFoundError(f"No existe el registro a reproducir: {ruta_csv}")

        self._archivo: Optional[TextIO] = None
        self._reader = None

    def conectar(self) -> None:
        """
        Abre (o reabre desde el inicio) el archivo CSV.
        """
        self.cerrar()
        self._archivo = self.path.open(mode="r", encoding="utf-8", newline="")
        self._reader = csv.DictReader(self._archivo)

    def cerrar(self) -> None:
        if self._archivo is not None:
            self._archivo.close()
            self._archivo = None

    def leer_linea(self) -> str:
        """
        Devuelve la siguiente fila unida por comas; al final levanta StopIteration.
        """
        if self._archivo is None:
            self.conectar()

        try:
            fila = next(self._reader)
        except StopIteration:
            raise StopIteration("Fin del registro")

        return ",".join((fila.get(col) or "") for col in ENCABEZADO)
