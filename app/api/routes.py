# app/api/routes.py
import os
from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from .. import schemas
from ..db import get_db
from ..errors import ImportFailure
from ..services import import_feed
from ..uploads import stored_upload, UploadTooLarge
from ..utils import logger

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}


def _error(status_code: int, kind: str, message: str):
    return JSONResponse(status_code=status_code, content={"kind": kind, "message": message})


@router.post(
    "/importar-xml",
    response_model=schemas.ImportOut,
    responses={400: {"model": schemas.ErrorOut}, 413: {"model": schemas.ErrorOut},
               500: {"model": schemas.ErrorOut}},
)
def importar_xml(request: Request, xmlFile: UploadFile | None = File(None),
                 db: Session = Depends(get_db)):
    if xmlFile is None:
        return _error(400, "EmptyUpload", "Nenhum arquivo enviado")
    settings = request.app.state.settings
    try:
        with stored_upload(xmlFile.file, settings.upload_dir, settings.max_upload_bytes) as path:
            if os.path.getsize(path) == 0:
                return _error(400, "EmptyUpload", "Arquivo enviado está vazio")
            with open(path, "rb") as fh:
                xml = fh.read()
            result = import_feed(
                db, xml,
                timeout=settings.import_timeout,
                on_mapping_error=settings.mapping_error_policy,
            )
    except UploadTooLarge as e:
        return _error(413, "UploadTooLarge", str(e))
    except ImportFailure as e:
        logger.exception("Import of %s failed", xmlFile.filename)
        return _error(500, e.kind, e.message)
    except Exception as e:
        logger.exception("Import of %s failed unexpectedly", xmlFile.filename)
        return _error(500, type(e).__name__, str(e))
    finally:
        xmlFile.file.close()

    return schemas.ImportOut(
        message="Importação concluída com sucesso",
        importedCount=result.imported_count,
        skippedCount=result.skipped_count,
    )
