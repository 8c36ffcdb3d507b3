"""
Definicion de estructuras de datos del sistema

- LecturaSensores: lo que el Microcontrolador lee de la celda y del INA219 en un ciclo
- EstadoBanco: estado de temporizacion del motor (unico estado mutable del banco)
- MedicionBanco: registro de 7 campos que el banco emite y el colector almacena

Estas clases son el contrato comun entre Microcontrolador, Controller y View.
"""

from dataclasses import dataclass


# Encabezado del registro (orden de campos en la linea y en el CSV)
ENCABEZADO = [
    "MotorRPM",
    "GearboxRPM",
    "Force(N)",
    "Torque(Nm)",
    "InputPower(W)",
    "OutputPower(W)",
    "Efficiency(%)",
]


@dataclass
class LecturaSensores:
    masa_kg: float
    bus_v: float
    shunt_mv: float
    corriente_ma: float


@dataclass
class EstadoBanco:
    rpm_objetivo: int
    cambio_pendiente: bool = True
    retardo_us: int = 1


@dataclass
class MedicionBanco:
    motor_rpm: int
    gearbox_rpm: float
    fuerza_n: float
    torque_nm: float
    potencia_in_w: float
    potencia_out_w: float
    eficiencia_pct: float

    def a_campos(self) -> list:
        """Campos formateados como viajan en la linea de texto."""
        return [
            str(int(self.motor_rpm)),
            f"{self.gearbox_rpm:.2f}",
            f"{self.fuerza_n:.3f}",
            f"{self.torque_nm:.3f}",
            f"{self.potencia_in_w:.3f}",
            f"{self.potencia_out_w:.3f}",
            f"{self.eficiencia_pct:.3f}",
        ]

    def a_linea(self) -> str:
        return ",".join(self.a_campos())
