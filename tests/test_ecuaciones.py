import math

import pytest

from gearbox_monitor.model import ecuaciones as eq


def test_retardo_a_600_rpm_es_500_us():
    assert eq.frecuencia_pasos(600, 200, 1) == pytest.approx(2000.0)
    assert eq.retardo_us(600, 200, 1) == 500


def test_retardo_positivo_y_no_creciente_en_todo_el_rango():
    retardos = [eq.retardo_us(rpm, 200, 1) for rpm in range(100, 1201)]

    assert all(r >= 1 for r in retardos)
    assert all(a >= b for a, b in zip(retardos, retardos[1:]))


def test_retardo_estrictamente_decreciente_entre_velocidades_distinguibles():
    retardos = [eq.retardo_us(rpm, 200, 1) for rpm in range(100, 1201, 50)]

    assert all(a > b for a, b in zip(retardos, retardos[1:]))
    assert retardos[0] == 3000
    assert retardos[-1] == 250


def test_frecuencia_no_positiva_se_fuerza_a_1_hz():
    assert eq.retardo_us(0, 200, 1) == 1_000_000
    assert eq.retardo_us(-50, 200, 1) == 1_000_000


def test_retardo_nunca_baja_de_1_us():
    assert eq.retardo_us(10_000_000, 200, 16) == 1


def test_micropasos_multiplican_la_frecuencia():
    assert eq.retardo_us(600, 200, 4) == 125


def test_fuerza_y_torque():
    assert eq.fuerza_n(2.0, 9.81) == pytest.approx(19.62)
    assert eq.torque_nm(19.62, 0.05) == pytest.approx(0.981)


def test_voltaje_y_potencia_de_entrada():
    v = eq.voltaje_alimentacion(12.0, 39.0)
    assert v == pytest.approx(12.039)
    assert eq.potencia_in(v, 500.0) == pytest.approx(6.0195)


def test_velocidad_de_salida_y_angular():
    assert eq.rpm_salida(600, 15.0) == pytest.approx(40.0)
    assert eq.velocidad_angular(60.0) == pytest.approx(2 * math.pi)
    assert eq.potencia_out(0.5, 4.0) == pytest.approx(2.0)


@pytest.mark.parametrize("p_in", [0.0, 0.4, 0.5, -3.0])
def test_eficiencia_cero_bajo_el_umbral(p_in):
    assert eq.eficiencia_pct(1.0, p_in, 0.5) == 0.0


def test_eficiencia_sobre_el_umbral():
    assert eq.eficiencia_pct(2.0, 10.0, 0.5) == pytest.approx(20.0)
