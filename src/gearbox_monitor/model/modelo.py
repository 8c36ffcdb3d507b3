"""
Modelo del sistema

Este modulo representa la capa Modelo del patron MVC.

Su responsabilidad es:
- Recibir la lectura de sensores y la velocidad comandada
- Utilizar las ecuaciones del sistema
- Entregar la MedicionBanco que el Microcontrolador emite como linea de texto
"""

from gearbox_monitor.config.settings import SETTINGS, Settings
from gearbox_monitor.model import ecuaciones as eq
from gearbox_monitor.model.muestra import LecturaSensores, MedicionBanco


class Modelo:
    """
    Deriva las seis magnitudes del registro a partir de una lectura cruda.

    No guarda estado: todo se recalcula en cada ciclo.
    """

    def __init__(self, settings: Settings = SETTINGS):
        self.settings = settings

    def procesar(self, rpm_motor: int, lectura: LecturaSensores) -> MedicionBanco:
        s = self.settings

        # Celda de carga -> fuerza -> torque
        fuerza = eq.fuerza_n(lectura.masa_kg, s.gravedad)
        torque = eq.torque_nm(fuerza, s.radio_brazo_m)

        # INA219 -> potencia de entrada
        voltaje = eq.voltaje_alimentacion(lectura.bus_v, lectura.shunt_mv)
        p_in = eq.potencia_in(voltaje, lectura.corriente_ma)

        # Salida del reductor -> potencia mecanica
        rpm_out = eq.rpm_salida(rpm_motor, s.relacion_reductor)
        p_out = eq.potencia_out(torque, eq.velocidad_angular(rpm_out))

        eficiencia = eq.eficiencia_pct(p_out, p_in, s.umbral_potencia_w)

        return MedicionBanco(
            motor_rpm=int(rpm_motor),
            gearbox_rpm=rpm_out,
            fuerza_n=fuerza,
            torque_nm=torque,
            potencia_in_w=p_in,
            potencia_out_w=p_out,
            eficiencia_pct=eficiencia,
        )
