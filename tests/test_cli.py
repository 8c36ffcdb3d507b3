import argparse
import csv
from pathlib import Path

import pytest

from gearbox_monitor import banco, colector
from gearbox_monitor.config.settings import SETTINGS
from gearbox_monitor.model.almacenamiento import RegistroCSV
from gearbox_monitor.model.muestra import ENCABEZADO, MedicionBanco


pytestmark = pytest.mark.usefixtures("restaurar_logging")


def _csv_guardado(tmp_path, n=15):
    ruta = tmp_path / "guardado.csv"
    with RegistroCSV(str(ruta)) as registro:
        for i in range(n):
            rpm = 100 + 50 * i
            registro.agregar(MedicionBanco(rpm, rpm / 15.0, 2.0, 0.1, 6.0, 0.5, 8.0))
    return ruta


def test_colector_reproduce_csv(tmp_path):
    origen = _csv_guardado(tmp_path)
    salida = tmp_path / "out" / "copia.csv"
    png = tmp_path / "out" / "copia.png"

    codigo = colector.main(["--reproducir", str(origen), "--salida", str(salida), "--png", str(png), "--log-level", "WARNING"])

    assert codigo == 0
    assert png.exists()
    with open(salida, newline="", encoding="utf-8") as f:
        filas = list(csv.reader(f))
    assert filas[0] == ENCABEZADO
    assert len(filas) == 16
    assert salida.read_text(encoding="utf-8") == origen.read_text(encoding="utf-8")


def test_colector_falla_si_la_fuente_no_acepta_velocidad(tmp_path):
    origen = _csv_guardado(tmp_path, n=2)

    codigo = colector.main(
        ["--reproducir", str(origen), "--rpm", "600", "--salida", str(tmp_path / "x.csv"), "--log-level", "WARNING"]
    )

    assert codigo == 1


def test_colector_origenes_excluyentes():
    with pytest.raises(SystemExit):
        colector.parse_args(["--simulado", "--puerto", "COM3"])


def test_rutas_de_salida_por_defecto():
    args = argparse.Namespace(salida=None, png=None)

    ruta_csv, ruta_png = colector.rutas_salida(args, SETTINGS)

    assert ruta_csv.parent == Path(SETTINGS.ruta_csv).parent
    assert ruta_csv.name.startswith("ensayo_")
    assert ruta_png == ruta_csv.with_suffix(".png")


def test_banco_emite_un_registro_por_ciclo(tuberia, monkeypatch, capsys):
    lector, escritor = tuberia
    escritor.write("900\n")
    escritor.flush()
    monkeypatch.setattr("sys.stdin", lector)

    codigo = banco.main(["--ciclos", "3", "--log-level", "WARNING"])

    assert codigo == 0
    lineas = capsys.readouterr().out.splitlines()
    assert len(lineas) == 3
    for linea in lineas:
        campos = linea.split(",")
        assert len(campos) == 7
        assert campos[:2] == ["900", "60.00"]
