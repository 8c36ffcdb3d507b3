"""
Canales de texto del banco

El Microcontrolador recibe comandos de velocidad y emite registros por un canal de texto.
Un canal implementa:
- disponible() -> bool         (hay texto esperando)
- leer_disponible() -> str     (consume todo lo que hay en el buffer)
- escribir_linea(linea)        (emite una linea terminada en '\\n')

Canales:
- CanalMemoria: buffers en memoria (simulacion y pruebas).
- CanalConsola: stdin/stdout (el banco corre como proceso y el PC lo lee por un pipe o SSH).
- CanalSerial: puerto serial (pyserial), ej. USB gadget del Raspberry Pi hacia el PC.
"""

import os
import re
import select
import sys
from collections import deque
from typing import Optional

_ENTERO = re.compile(r"-?\d+")


def interpretar_comando(texto: str) -> Optional[int]:
    """
    Extrae el primer entero del texto (se saltan caracteres previos no numericos).

    Retorna None si no hay ningun entero.
    """
    m = _ENTERO.search(texto)
    if m is None:
        return None
    return int(m.group(0))


class CanalMemoria:
    def __init__(self):
        self._entrada = deque()
        self.salida = deque()

    def enviar(self, texto: str) -> None:
        """Deja texto en la entrada del banco (lado PC)."""
        self._entrada.append(texto)

    def disponible(self) -> bool:
        return len(self._entrada) > 0

    def leer_disponible(self) -> str:
        texto = "".join(self._entrada)
        self._entrada.clear()
        return texto

    def escribir_linea(self, linea: str) -> None:
        self.salida.append(linea)

    def sacar_linea(self) -> Optional[str]:
        """Retira la linea mas antigua emitida por el banco (lado PC)."""
        if not self.salida:
            return None
        return self.salida.popleft()


class CanalConsola:
    """
    Canal sobre stdin/stdout. La deteccion de texto disponible usa select (POSIX).
    """

    def __init__(self, entrada=None, salida=None):
        self.entrada = entrada if entrada is not None else sys.stdin
        self.salida = salida if salida is not None else sys.stdout

    def disponible(self) -> bool:
        listos, _, _ = select.select([self.entrada], [], [], 0)
        return bool(listos)

    def leer_disponible(self) -> str:
        # Lectura cruda del descriptor: el buffer de texto de stdin ocultaria bytes a select
        fd = self.entrada.fileno()
        partes = []
        while self.disponible():
            bloque = os.read(fd, 4096)
            if not bloque:
                break
            partes.append(bloque)
        return b"".join(partes).decode("utf-8", errors="ignore")

    def escribir_linea(self, linea: str) -> None:
        self.salida.write(linea + "\n")
        self.salida.flush()


class CanalSerial:
    def __init__(self, puerto: str, baudrate: int = 115200):
        self.puerto = puerto
        self.baudrate = baudrate

        # Objeto serial (pyserial), se inicializa en conectar()
        self._ser = None

    def conectar(self) -> None:
        try:
            import serial  # pyserial
        except ImportError as e:
            raise ImportError("Falta instalar pyserial. Ejecuta: pip install pyserial") from e

        # timeout=0: las lecturas nunca bloquean el ciclo del banco
        self._ser = serial.Serial(self.puerto, self.baudrate, timeout=0)
        self._ser.reset_input_buffer()

    def cerrar(self) -> None:
        if self._ser is not None and self._ser.is_open:
            self._ser.close()

    def _puerto(self):
        if self._ser is None:
            raise RuntimeError("Serial no conectado. Llama primero a conectar().")
        return self._ser

    def disponible(self) -> bool:
        return self._puerto().in_waiting > 0

    def leer_disponible(self) -> str:
        ser = self._puerto()
        raw = ser.read(ser.in_waiting)
        return raw.decode("utf-8", errors="ignore")

    def escribir_linea(self, linea: str) -> None:
        self._puerto().write((linea + "\n").encode("utf-8"))
