"""
Graficos del ensayo (matplotlib)

Tres graficos contra la velocidad de salida del reductor:
- Torque vs GearboxRPM
- Eficiencia vs GearboxRPM
- Potencia de entrada / salida vs GearboxRPM

Se usa matplotlib.figure.Figure directamente (sin pyplot): funciona sin pantalla
y la figura se puede regenerar cuantas veces haga falta.
"""

import logging
from pathlib import Path
from typing import Sequence

from matplotlib.figure import Figure

from gearbox_monitor.model.muestra import MedicionBanco

logger = logging.getLogger(__name__)


class GraficosBanco:
    def __init__(self, titulo: str = "Ensayo de reductor"):
        self.figura = Figure(figsize=(10, 10))
        self.figura.suptitle(titulo)
        self.ax_torque, self.ax_eficiencia, self.ax_potencia = self.figura.subplots(3, 1, sharex=True)
        self.actualizaciones = 0
        self._preparar_ejes()

    def _preparar_ejes(self) -> None:
        self.ax_torque.set_ylabel("Torque (Nm)")
        self.ax_torque.set_title("Torque vs velocidad de salida")

        self.ax_eficiencia.set_ylabel("Eficiencia (%)")
        self.ax_eficiencia.set_title("Eficiencia vs velocidad de salida")

        self.ax_potencia.set_ylabel("Potencia (W)")
        self.ax_potencia.set_xlabel("Velocidad de salida (RPM)")
        self.ax_potencia.set_title("Potencia de entrada / salida vs velocidad de salida")

        for ax in (self.ax_torque, self.ax_eficiencia, self.ax_potencia):
            ax.grid(True, alpha=0.3)

    def actualizar(self, historial: Sequence[MedicionBanco]) -> None:
        """Redibuja los tres graficos con todo el historial."""
        for ax in (self.ax_torque, self.ax_eficiencia, self.ax_potencia):
            ax.clear()
        self._preparar_ejes()

        rpm = [m.gearbox_rpm for m in historial]

        self.ax_torque.scatter(rpm, [m.torque_nm for m in historial], s=8, color="tab:blue")
        self.ax_eficiencia.scatter(rpm, [m.eficiencia_pct for m in historial], s=8, color="tab:green")
        self.ax_potencia.scatter(rpm, [m.potencia_in_w for m in historial], s=8, color="tab:red", label="Entrada")
        self.ax_potencia.scatter(rpm, [m.potencia_out_w for m in historial], s=8, color="tab:orange", label="Salida")

        if historial:
            self.ax_potencia.legend(loc="upper left")

        self.figura.tight_layout()
        self.actualizaciones += 1

    def guardar(self, ruta_png: str) -> Path:
        ruta = Path(ruta_png)
        ruta.parent.mkdir(parents=True, exist_ok=True)
        self.figura.savefig(ruta, dpi=120)
        logger.info("Grafico guardado en %s", ruta)
        return ruta
