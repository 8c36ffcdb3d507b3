"""
Ecuaciones del sistema (Gearbox Monitor)

Este modulo contiene las funciones matematicas utilizadas por el banco, tales como:

- Temporizacion del motor paso a paso (frecuencia de pasos -> retardo entre flancos)
- Fuerza y torque desde la celda de carga
- Potencia electrica de entrada desde el INA219
- Velocidad y potencia mecanica a la salida del reductor
- Eficiencia con umbral de ruido

Nota:
- No hay control de lazo cerrado: la velocidad de salida se deduce de la velocidad comandada.
"""

import math


# -------------------------------------------------------
# Temporizacion del motor
# -------------------------------------------------------

def frecuencia_pasos(rpm: float, pasos_por_vuelta: int, micropasos: int) -> float:
    """
    Frecuencia de pasos (Hz) para una velocidad del motor:
        f = rpm * pasos * micropasos / 60
    """
    return (rpm * pasos_por_vuelta * micropasos) / 60.0


def retardo_us(rpm: float, pasos_por_vuelta: int, micropasos: int) -> int:
    """
    Retardo (us) entre flancos del pulso de paso.

    Una frecuencia no positiva se fuerza a 1 Hz (evita division por cero)
    y el retardo nunca baja de 1 us.
    """
    freq = frecuencia_pasos(rpm, pasos_por_vuelta, micropasos)
    if freq <= 0:
        freq = 1.0
    return max(1, int(round(1_000_000.0 / freq)))


# -------------------------------------------------------
# Celda de carga
# -------------------------------------------------------

def fuerza_n(masa_kg: float, gravedad: float = 9.81) -> float:
    """F = m * g"""
    return masa_kg * gravedad


def torque_nm(fuerza: float, radio_m: float) -> float:
    """T = F * r"""
    return fuerza * radio_m


# -------------------------------------------------------
# Lado electrico (INA219)
# -------------------------------------------------------

def voltaje_alimentacion(bus_v: float, shunt_mv: float) -> float:
    """
    Voltaje aproximado de la fuente:
        V = V_bus + V_shunt
    """
    return bus_v + shunt_mv / 1000.0


def potencia_in(voltaje_v: float, corriente_ma: float) -> float:
    """Pin = V * I (corriente en mA)."""
    return voltaje_v * (corriente_ma / 1000.0)


# -------------------------------------------------------
# Lado mecanico (salida del reductor)
# -------------------------------------------------------

def rpm_salida(rpm_motor: float, relacion: float) -> float:
    return rpm_motor / relacion


def velocidad_angular(rpm: float) -> float:
    """Convierte RPM a rad/s."""
    return rpm * 2.0 * math.pi / 60.0


def potencia_out(torque: float, omega: float) -> float:
    """Pout = T * w"""
    return torque * omega


# -------------------------------------------------------
# Eficiencia
# -------------------------------------------------------

def eficiencia_pct(p_out: float, p_in: float, umbral_w: float = 0.5) -> float:
    """
    Eficiencia (%) = Pout / Pin * 100

    Si Pin no supera el umbral de ruido se reporta exactamente 0.
    """
    if p_in > umbral_w:
        return (p_out / p_in) * 100.0
    return 0.0
