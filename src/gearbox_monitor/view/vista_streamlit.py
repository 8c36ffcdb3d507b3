"""
Vista Streamlit del banco de reductores (MVC)

La vista solo arma la interfaz; el ensayo lo maneja GearboxController.

Paginas:
- "Ensayo en vivo": elegir fuente, comandar la velocidad, ver los graficos del banco
  mientras corre y descargar el registro al terminar.
- "Analisis de registros": abrir un CSV guardado y resumirlo por escalon de velocidad.
"""

import tempfile
import time
from dataclasses import asdict
from pathlib import Path

import pandas as pd
import streamlit as st

from gearbox_monitor.config.settings import SETTINGS
from gearbox_monitor.controller.controller import (
    ConfigEnsayo,
    EstadoController,
    GearboxController,
    construir_fuente_simulada,
)
from gearbox_monitor.controller.fuentes import FuenteCSV, FuenteSerialBanco
from gearbox_monitor.model.almacenamiento import fila_a_medicion
from gearbox_monitor.model.muestra import ENCABEZADO
from gearbox_monitor.view.graficos import GraficosBanco

FUENTES = ("Banco simulado", "Banco por puerto serial", "Reproducir CSV")

# Segundos de lectura entre redibujos de la pagina
VENTANA_LECTURA_S = 0.25


# ============================================================
# DataFrames
# ============================================================

def historial_a_df(historial) -> pd.DataFrame:
    """Historial de MedicionBanco con las columnas del CSV."""
    if not historial:
        return pd.DataFrame(columns=ENCABEZADO)

    df = pd.DataFrame([asdict(m) for m in historial])
    df.columns = ENCABEZADO
    return df


def resumen_por_velocidad(df: pd.DataFrame) -> pd.DataFrame:
    """
    Promedio y cantidad de registros por velocidad comandada.
    Un ensayo tipico barre varios escalones de MotorRPM.
    """
    if df.empty:
        return df

    resumen = df.groupby("MotorRPM").mean(numeric_only=True)
    resumen["Registros"] = df.groupby("MotorRPM").size()
    return resumen.round(3)


def _figura_desde_df(df: pd.DataFrame, titulo: str):
    graficos = GraficosBanco(titulo)
    graficos.actualizar([fila_a_medicion(fila) for fila in df.to_dict("records")])
    return graficos.figura


def _guardar_subida(archivo, nombre: str) -> Path:
    destino = Path(tempfile.gettempdir()) / "gearbox_monitor" / nombre
    destino.parent.mkdir(parents=True, exist_ok=True)
    destino.write_bytes(archivo.getbuffer())
    return destino


# ============================================================
# Controller en session_state
# ============================================================

def _nueva_fuente(tipo: str, puerto: str, ruta_csv):
    if tipo == FUENTES[0]:
        return construir_fuente_simulada()
    if tipo == FUENTES[1]:
        return FuenteSerialBanco(puerto=puerto, baudrate=SETTINGS.baudrate, timeout_s=SETTINGS.timeout_s)
    return FuenteCSV(str(ruta_csv))


def _controller_para(tipo: str, puerto: str, ruta_csv):
    """
    Reusa el controller guardado mientras no cambie la fuente elegida.
    Si cambia, el anterior se resetea (cierra puerto / archivo) antes de reemplazarlo.
    """
    clave = (tipo, puerto if tipo == FUENTES[1] else None, str(ruta_csv) if ruta_csv else None)

    if st.session_state.get("clave_fuente") == clave:
        return st.session_state.get("ctrl")

    anterior = st.session_state.get("ctrl")
    if anterior is not None:
        anterior.reset()

    ctrl = None
    if tipo != FUENTES[2] or ruta_csv is not None:
        ctrl = GearboxController(_nueva_fuente(tipo, puerto, ruta_csv), graficos=GraficosBanco())

    st.session_state["ctrl"] = ctrl
    st.session_state["clave_fuente"] = clave
    return ctrl


# ============================================================
# Pagina: Ensayo en vivo
# ============================================================

def _panel_comandos(ctrl: GearboxController) -> None:
    estado = ctrl.get_estado()
    acepta_rpm = hasattr(ctrl.fuente, "enviar_velocidad")

    rpm = st.slider(
        "Velocidad del motor (RPM)",
        min_value=SETTINGS.rpm_min,
        max_value=SETTINGS.rpm_max,
        value=SETTINGS.rpm_inicial,
        step=50,
        disabled=not acepta_rpm,
    )
    ruta_csv = st.text_input("Registro CSV", value=SETTINGS.ruta_csv)
    ruta_png = st.text_input("Imagen final", value=SETTINGS.ruta_png)

    c_ini, c_vel, c_fin, c_reset = st.columns(4)

    if c_ini.button("Iniciar", disabled=estado != EstadoController.READY):
        ctrl.start_ensayo(
            ConfigEnsayo(rpm_inicial=rpm if acepta_rpm else None, ruta_csv=ruta_csv, ruta_png=ruta_png)
        )
        st.rerun()

    if c_vel.button("Aplicar RPM", disabled=estado != EstadoController.RUNNING or not acepta_rpm):
        try:
            ctrl.set_rpm(rpm)
            st.toast(f"Banco a {rpm} RPM")
        except (ValueError, RuntimeError, OSError) as e:
            st.error(f"No se pudo enviar la velocidad: {e}")

    if c_fin.button("Detener", disabled=estado != EstadoController.RUNNING):
        ctrl.stop_ensayo()
        st.rerun()

    if c_reset.button("Reset"):
        ctrl.reset()
        st.rerun()


def _panel_en_curso(ctrl: GearboxController) -> None:
    # Se leen lineas durante una ventana corta y luego se redibuja
    fin = time.monotonic() + VENTANA_LECTURA_S
    while time.monotonic() < fin and ctrl.get_estado() == EstadoController.RUNNING:
        ctrl.tick()

    df = historial_a_df(ctrl.get_historial())
    if df.empty:
        st.info("Esperando registros del banco...")
        return

    ultimo = df.iloc[-1]
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Motor (RPM)", int(ultimo["MotorRPM"]))
    m2.metric("Salida (RPM)", f"{ultimo['GearboxRPM']:.2f}")
    m3.metric("Torque (Nm)", f"{ultimo['Torque(Nm)']:.3f}")
    m4.metric("Eficiencia (%)", f"{ultimo['Efficiency(%)']:.1f}")

    # La figura del banco se regenera cada N registros dentro del controller
    if ctrl.graficos is not None and ctrl.graficos.actualizaciones > 0:
        st.pyplot(ctrl.graficos.figura)

    st.caption(f"{len(df)} registros")


def _panel_finalizado(ctrl: GearboxController) -> None:
    st.success(f"Ensayo finalizado: {len(ctrl.get_historial())} registros")

    ruta_csv = ctrl.get_ultimo_csv_path()
    if ruta_csv and Path(ruta_csv).exists():
        st.download_button(
            "Descargar CSV",
            data=Path(ruta_csv).read_bytes(),
            file_name=Path(ruta_csv).name,
            mime="text/csv",
        )

    ruta_png = ctrl.get_ultimo_png_path()
    if ruta_png and Path(ruta_png).exists():
        st.image(ruta_png, caption=ruta_png)

    st.dataframe(resumen_por_velocidad(historial_a_df(ctrl.get_historial())))


def pagina_ensayo() -> None:
    st.sidebar.subheader("Fuente")
    tipo = st.sidebar.radio("Origen de las lineas", FUENTES)

    puerto = SETTINGS.puerto_serial
    ruta_csv = None

    if tipo == FUENTES[1]:
        puerto = st.sidebar.text_input("Puerto serial", value=SETTINGS.puerto_serial)
    elif tipo == FUENTES[2]:
        subido = st.sidebar.file_uploader("Registro a reproducir", type=["csv"])
        if subido is not None:
            ruta_csv = _guardar_subida(subido, "reproducir.csv")

    ctrl = _controller_para(tipo, puerto, ruta_csv)
    if ctrl is None:
        st.info("Sube un registro CSV en la barra lateral para reproducirlo.")
        return

    estado = ctrl.get_estado()
    st.write(f"**Estado:** {estado.value}")
    if estado == EstadoController.ERROR:
        st.error(ctrl.get_error_msg())

    _panel_comandos(ctrl)

    if estado == EstadoController.RUNNING:
        _panel_en_curso(ctrl)
        st.rerun()

    if estado == EstadoController.FINISHED:
        _panel_finalizado(ctrl)


# ============================================================
# Pagina: Analisis de registros
# ============================================================

def pagina_analisis() -> None:
    carpeta = Path(SETTINGS.ruta_csv).parent
    guardados = sorted(carpeta.glob("*.csv")) if carpeta.exists() else []

    subido = st.file_uploader("Abrir registro CSV", type=["csv"], key="analisis")
    elegido = st.selectbox(f"Registros en {carpeta}", ["-"] + [p.name for p in guardados])

    if subido is not None:
        ruta = _guardar_subida(subido, "analisis.csv")
    elif elegido != "-":
        ruta = carpeta / elegido
    else:
        st.info("Elegi un registro para analizar.")
        return

    df = pd.read_csv(ruta)
    faltantes = [c for c in ENCABEZADO if c not in df.columns]
    if faltantes:
        st.error(f"El archivo no es un registro del banco (faltan: {', '.join(faltantes)})")
        return

    st.write(f"**{ruta.name}**: {len(df)} registros")

    st.subheader("Resumen por velocidad")
    st.dataframe(resumen_por_velocidad(df))

    st.subheader("Graficos")
    st.pyplot(_figura_desde_df(df, ruta.name))

    columnas = st.multiselect(
        "Series contra la velocidad de salida",
        ENCABEZADO[2:],
        default=["Torque(Nm)", "Efficiency(%)"],
    )
    if columnas:
        st.line_chart(df.groupby("GearboxRPM")[columnas].mean())


# ============================================================
# UI principal
# ============================================================

def iniciar():
    st.set_page_config(page_title="Gearbox Monitor", layout="wide")
    st.title("Gearbox Monitor")

    pagina = st.sidebar.selectbox("Pagina", ["Ensayo en vivo", "Analisis de registros"])

    if pagina == "Ensayo en vivo":
        pagina_ensayo()
    else:
        pagina_analisis()


if __name__ == "__main__":
    iniciar()
