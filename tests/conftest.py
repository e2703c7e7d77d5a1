import io

import pytest
from PIL import Image

RG_TRANSCRIPT = (
    "REPUBLICA FEDERATIVA DO BRASIL\n"
    "REGISTRO GERAL 12.345.678-9\n"
    "NOME\n"
    "JOAO DA SILVA\n"
    "CPF 123.456.789-09\n"
    "DATA DE EXPEDICAO 01/02/2015\n"
    "ORGAO EMISSOR SSP/SC\n"
)

CNH_TRANSCRIPT = (
    "CARTEIRA NACIONAL DE HABILITACAO\n"
    "NOME\n"
    "MARIA OLIVEIRA\n"
    "CPF 935.411.347-80\n"
    "REGISTRO 01234567890\n"
    "VALIDADE 12/08/2030\n"
    "DATA EMISSAO 15/03/2020\n"
)

ADDRESS_TRANSCRIPT = (
    "COMPANHIA DE ENERGIA\n"
    "CENTRO\n"
    "RUA DAS FLORES 123\n"
    "88010-000 FLORIANOPOLIS SC\n"
)

EXIF_ORIENTATION_TAG = 0x0112


def make_jpeg(width: int, height: int, orientation: int | None = None) -> bytes:
    """Noise JPEG; noise keeps the encoded size well above the legibility floor."""
    image = Image.effect_noise((width, height), 64).convert("RGB")
    buf = io.BytesIO()
    if orientation is None:
        image.save(buf, format="JPEG", quality=95)
    else:
        exif = Image.Exif()
        exif[EXIF_ORIENTATION_TAG] = orientation
        image.save(buf, format="JPEG", quality=95, exif=exif)
    return buf.getvalue()


@pytest.fixture()
def rg_transcript() -> str:
    return RG_TRANSCRIPT


@pytest.fixture()
def cnh_transcript() -> str:
    return CNH_TRANSCRIPT


@pytest.fixture()
def address_transcript() -> str:
    return ADDRESS_TRANSCRIPT


@pytest.fixture()
def legible_jpeg_bytes() -> bytes:
    """800x800 image, above every default legibility threshold."""
    return make_jpeg(800, 800)


@pytest.fixture()
def narrow_jpeg_bytes() -> bytes:
    """400px wide image, below the default 600px minimum width."""
    return make_jpeg(400, 800)


@pytest.fixture()
def oversized_jpeg_bytes() -> bytes:
    return make_jpeg(3000, 1500)


@pytest.fixture()
def rotated_jpeg_bytes() -> bytes:
    """800x600 image tagged with EXIF orientation 6 (rotate 90 degrees clockwise)."""
    return make_jpeg(800, 600, orientation=6)
