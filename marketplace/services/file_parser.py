# marketplace/services/file_parser.py
import pandas as pd
from fastapi import UploadFile
from typing import List, Dict, Any, Optional
import io

from marketplace.core.exceptions import ValidationError

PRODUCT_COLUMNS = ["codigo", "nombre", "descripcion", "precio", "stock", "categoria"]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df.columns = [str(c).strip().lower() for c in df.columns]
    # empty cells come back as NaN
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict('records')


async def parse_excel(file: UploadFile) -> List[Dict[str, Any]]:
    contents = await file.read()
    file_obj = io.BytesIO(contents)

    filename = file.filename.lower()
    if filename.endswith('.xlsx'):
        df = pd.read_excel(file_obj, engine='openpyxl')
    elif filename.endswith('.xls'):
        df = pd.read_excel(file_obj, engine='xlrd')
    else:
        raise ValidationError("Formato no soportado. Usa .xlsx o .xls")

    return _records(df)


async def parse_csv(file: UploadFile, delimiter: str = ',') -> List[Dict[str, Any]]:
    contents = await file.read()
    file_obj = io.BytesIO(contents)

    df = pd.read_csv(file_obj, delimiter=delimiter, dtype=str)
    return _records(df)


async def detect_and_parse_file(file: UploadFile) -> List[Dict[str, Any]]:
    """Picks the parser from the file extension."""
    filename = (file.filename or "").lower()
    if filename.endswith(('.xlsx', '.xls')):
        return await parse_excel(file)
    elif filename.endswith('.csv'):
        return await parse_csv(file)
    else:
        raise ValidationError("Formato no soportado. Usa .xlsx, .xls o .csv")


def build_excel(records: List[Dict[str, Any]], columns: List[str], sheet_name: str = "Productos") -> bytes:
    df = pd.DataFrame(records, columns=columns)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return buffer.getvalue()


def clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        # numeric codes read from Excel arrive as floats
        value = int(value)
    text = str(value).strip()
    return text or None


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return float(str(value).replace(",", "."))


def to_int(value: Any, default: int = 0) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return int(float(str(value)))
