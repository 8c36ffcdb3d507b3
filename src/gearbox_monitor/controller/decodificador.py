"""
Este modulo decodifica los registros de texto que vienen desde el banco
(o desde la simulacion / un CSV reproducido).

Objetivo:
- Convertir una linea de texto de 7 campos en un objeto MedicionBanco.

Contrato esperado (banco -> PC):
  <MotorRPM>,<GearboxRPM>,<Force(N)>,<Torque(Nm)>,<InputPower(W)>,<OutputPower(W)>,<Efficiency(%)>

Ejemplo:
  600,40.00,3.139,0.157,4.695,0.658,14.008

Notas:
- El banco tambien puede imprimir mensajes sueltos (ej. sensor ausente al arrancar);
  esas lineas no cumplen el formato y el colector las descarta.
"""

from typing import List

from gearbox_monitor.model.muestra import ENCABEZADO, MedicionBanco


def separar_campos(linea: str) -> List[str]:
    """Campos de la linea sin espacios ni salto de linea."""
    return [p.strip() for p in linea.strip().split(",")]


def decodificar_linea_medicion(linea: str) -> MedicionBanco:
    """
    Decodifica una linea de registro y retorna una MedicionBanco.

    Errores:
    - ValueError si el formato no coincide o si falla la conversion de tipos
    """

    # Normaliza la linea (quita espacios y saltos de linea)
    linea = linea.strip()

    if linea == "":
        raise ValueError("Linea invalida: vacia")

    partes = separar_campos(linea)

    if len(partes) != len(ENCABEZADO):
        raise ValueError(f"Linea invalida: cantidad de campos distinta a {len(ENCABEZADO)}")

    # - MotorRPM: int
    # - resto: float
    try:
        motor_rpm = int(partes[0])
        valores = [float(p) for p in partes[1:]]
    except ValueError as e:
        raise ValueError("Linea invalida: conversion de tipos fallo") from e

    return MedicionBanco(motor_rpm, *valores)
