"""
Almacenamiento de datos

Este modulo se encarga del registro persistente de las mediciones del banco:

- RegistroCSV: archivo CSV con encabezado, una fila por registro aceptado.
  Las filas se escriben con el mismo formato de la linea recibida y se hace
  flush en cada fila (si el ensayo se corta, lo escrito queda en disco).
- leer_registro(): carga un CSV guardado como lista de MedicionBanco.
"""

import csv
from pathlib import Path
from typing import List, Optional, Sequence

from gearbox_monitor.model.muestra import ENCABEZADO, MedicionBanco


class RegistroCSV:
    def __init__(self, ruta: str):
        self.ruta = Path(ruta)
        self.filas = 0
        self._archivo = None
        self._writer = None

    def abrir(self) -> None:
        self.ruta.parent.mkdir(parents=True, exist_ok=True)
        self._archivo = self.ruta.open(mode="w", encoding="utf-8", newline="")
        self._writer = csv.writer(self._archivo)
        self._writer.writerow(ENCABEZADO)
        self._archivo.flush()

    @property
    def abierto(self) -> bool:
        return self._archivo is not None and not self._archivo.closed

    def agregar(self, medicion: MedicionBanco, campos: Optional[Sequence[str]] = None) -> None:
        """
        campos: texto original de cada campo (tal como llego del banco). Sin campos
        se escribe la medicion con el formato del registro.
        """
        if not self.abierto:
            raise RuntimeError("Registro no abierto. Llama primero a abrir().")

        self._writer.writerow(list(campos) if campos is not None else medicion.a_campos())
        self._archivo.flush()
        self.filas += 1

    def cerrar(self) -> None:
        if self.abierto:
            self._archivo.close()

    def __enter__(self):
        self.abrir()
        return self

    def __exit__(self, *exc):
        self.cerrar()
        return False


def leer_registro(ruta: str) -> List[MedicionBanco]:
    """
    Lee un CSV generado por RegistroCSV.
    """
    with open(ruta, mode="r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return [fila_a_medicion(fila) for fila in reader]


def fila_a_medicion(fila: dict) -> MedicionBanco:
    return MedicionBanco(
        motor_rpm=int(fila["MotorRPM"]),
        gearbox_rpm=float(fila["GearboxRPM"]),
        fuerza_n=float(fila["Force(N)"]),
        torque_nm=float(fila["Torque(Nm)"]),
        potencia_in_w=float(fila["InputPower(W)"]),
        potencia_out_w=float(fila["OutputPower(W)"]),
        eficiencia_pct=float(fila["Efficiency(%)"]),
    )
