"""
Controller del sistema (colector del lado PC)

Este modulo corresponde a la capa Controller del patron MVC.

El Controller es responsable de:
- Abrir la fuente de lineas (serial / simulada / CSV) y el registro CSV
- Enviar la velocidad objetivo al banco
- Decodificar cada linea; las invalidas se descartan sin aviso
- Guardar cada registro aceptado en el historial y en el CSV (campos tal como llegaron)
- Regenerar los graficos cada N registros aceptados
- Al detener: cerrar fuente y CSV, y guardar una imagen final de los graficos
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from gearbox_monitor.config.settings import SETTINGS, Settings
from gearbox_monitor.controller.decodificador import decodificar_linea_medicion, separar_campos
from gearbox_monitor.controller.fuentes import FuenteDatos, FuenteSimulada
from gearbox_monitor.model.almacenamiento import RegistroCSV
from gearbox_monitor.model.muestra import MedicionBanco

logger = logging.getLogger(__name__)


class EstadoController(str, Enum):
    READY = "READY"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    ERROR = "ERROR"


@dataclass
class ConfigEnsayo:
    rpm_inicial: Optional[int] = None
    ruta_csv: str = SETTINGS.ruta_csv
    ruta_png: str = SETTINGS.ruta_png
    graficar_cada_n: int = SETTINGS.graficar_cada_n


def construir_fuente_simulada(settings: Settings = SETTINGS) -> FuenteSimulada:
    return FuenteSimulada(settings=settings)


class GearboxController:
    """
    graficos: objeto con actualizar(historial) y guardar(ruta_png); None para no graficar.
    """

    def __init__(self, fuente: FuenteDatos, graficos=None, settings: Settings = SETTINGS):
        self.fuente = fuente
        self.graficos = graficos
        self.settings = settings

        self._estado = EstadoController.READY
        self._error_msg = None
        self._cfg = None
        self._registro = None
        self._historial: List[MedicionBanco] = []
        self._ultimo_csv = None
        self._ultimo_png = None

    # ----------------------------
    # Consultas
    # ----------------------------

    def get_estado(self) -> EstadoController:
        return self._estado

    def get_error_msg(self) -> Optional[str]:
        return self._error_msg

    def get_historial(self) -> List[MedicionBanco]:
        return list(self._historial)

    def get_ultimo_csv_path(self) -> Optional[str]:
        return self._ultimo_csv

    def get_ultimo_png_path(self) -> Optional[str]:
        return self._ultimo_png

    # ----------------------------
    # Flujo del ensayo
    # ----------------------------

    def start_ensayo(self, cfg: ConfigEnsayo) -> None:
        if self._estado != EstadoController.READY:
            raise RuntimeError(f"No se puede iniciar en estado {self._estado.value}")

        if cfg.graficar_cada_n < 1:
            raise ValueError("graficar_cada_n debe ser >= 1")

        self._cfg = cfg
        self._historial = []

        try:
            self.fuente.conectar()
            self._registro = RegistroCSV(cfg.ruta_csv)
            self._registro.abrir()

            if cfg.rpm_inicial is not None:
                self.set_rpm(cfg.rpm_inicial)
        except (OSError, ValueError, RuntimeError, ImportError) as e:
            logger.error("No se pudo iniciar el ensayo: %s", e)
            self._error_msg = str(e)
            self._estado = EstadoController.ERROR
            self._cerrar_recursos()
            return

        self._ultimo_csv = str(cfg.ruta_csv)
        self._estado = EstadoController.RUNNING
        logger.info("Ensayo iniciado, registro en %s", cfg.ruta_csv)

    def set_rpm(self, rpm: int) -> None:
        if not hasattr(self.fuente, "enviar_velocidad"):
            raise RuntimeError("La fuente actual no acepta comandos de velocidad")

        self.fuente.enviar_velocidad(rpm)
        logger.info("Velocidad enviada: %s RPM", rpm)

    def tick(self) -> Optional[MedicionBanco]:
        """
        Lee una linea de la fuente. Retorna la medicion aceptada o None.
        """
        if self._estado != EstadoController.RUNNING:
            return None

        try:
            linea = self.fuente.leer_linea()
        except TimeoutError:
            return None
        except StopIteration:
            logger.info("Fuente agotada")
            self.stop_ensayo()
            return None

        try:
            medicion = decodificar_linea_medicion(linea)
        except ValueError:
            logger.debug("Linea descartada: %r", linea)
            return None

        self._historial.append(medicion)
        self._registro.agregar(medicion, campos=separar_campos(linea))

        if self.graficos is not None and len(self._historial) % self._cfg.graficar_cada_n == 0:
            self.graficos.actualizar(self._historial)

        return medicion

    def stop_ensayo(self) -> None:
        if self._estado != EstadoController.RUNNING:
            return

        self._cerrar_recursos()

        # El CSV ya esta cerrado: el ensayo termina aunque falle la imagen
        self._estado = EstadoController.FINISHED
        logger.info("Ensayo detenido: %d registros", len(self._historial))

        if self.graficos is not None:
            try:
                self.graficos.actualizar(self._historial)
                self._ultimo_png = str(self.graficos.guardar(self._cfg.ruta_png))
            except (OSError, ValueError) as e:
                logger.error("No se pudo guardar la imagen final en %s: %s", self._cfg.ruta_png, e)
                self._error_msg = str(e)

    def ejecutar(self, cfg: ConfigEnsayo) -> None:
        """
        Bucle bloqueante del colector. Solo termina con Ctrl+C o si la fuente se agota.
        """
        self.start_ensayo(cfg)

        try:
            while self._estado == EstadoController.RUNNING:
                self.tick()
        except KeyboardInterrupt:
            logger.info("Interrupcion recibida")
        finally:
            self.stop_ensayo()

    def reset(self) -> None:
        if self._estado == EstadoController.RUNNING:
            self.stop_ensayo()

        self._cerrar_recursos()
        self._estado = EstadoController.READY
        self._error_msg = None
        self._historial = []

    def _cerrar_recursos(self) -> None:
        self.fuente.cerrar()
        if self._registro is not None:
            self._registro.cerrar()
