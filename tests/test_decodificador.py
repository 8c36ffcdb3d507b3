import pytest

from gearbox_monitor.controller.decodificador import decodificar_linea_medicion
from gearbox_monitor.model.microcontrolador import MENSAJE_SIN_INA219
from gearbox_monitor.model.muestra import MedicionBanco


def test_decodifica_linea_valida():
    m = decodificar_linea_medicion("600,40.00,3.139,0.157,4.695,0.658,14.008\r\n")

    assert m == MedicionBanco(600, 40.0, 3.139, 0.157, 4.695, 0.658, 14.008)


def test_tolera_espacios_entre_campos():
    m = decodificar_linea_medicion(" 100, 6.67, 1.0, 0.1, 2.0, 0.07, 3.5 ")

    assert m.motor_rpm == 100
    assert m.eficiencia_pct == 3.5


def test_linea_y_campos_coinciden_con_el_formato_de_salida():
    linea = "1200,80.00,9.810,0.981,12.000,8.218,68.487"

    assert decodificar_linea_medicion(linea).a_linea() == linea


@pytest.mark.parametrize(
    "linea",
    [
        "",
        "   ",
        MENSAJE_SIN_INA219,
        "600,40.00,3.139,0.157,4.695,0.658",
        "600,40.00,3.139,0.157,4.695,0.658,14.008,1",
        "600,40.00,abc,0.157,4.695,0.658,14.008",
        "600.5,40.00,3.139,0.157,4.695,0.658,14.008",
        "MotorRPM,GearboxRPM,Force(N),Torque(Nm),InputPower(W),OutputPower(W),Efficiency(%)",
    ],
)
def test_lineas_invalidas_levantan_value_error(linea):
    with pytest.raises(ValueError):
        decodificar_linea_medicion(linea)
