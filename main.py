import logging
import os
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Optional

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from database import db, create_document, get_documents
from pydantic import BaseModel, EmailStr, Field
from pydantic import ValidationError as SchemaError
from errors import InvoicingError, ValidationError
from schemas import CurrentUser, InvoiceDraft, Item, Letterhead, Notice, Party, User
from workspace import Workspace, WorkspaceRegistry
import reports

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Security settings
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 8))

# Storage and letterhead
LOCAL_STORE_DIR = os.getenv("LOCAL_STORE_DIR", "local_data")
LETTERHEAD = Letterhead(
    name=os.getenv("LETTERHEAD_NAME", "I-VOICE"),
    tagline=os.getenv("LETTERHEAD_TAGLINE", "INVOICE MANAGEMENT SYSTEM"),
    footer=os.getenv("LETTERHEAD_FOOTER", "Powered by: I-Voice"),
    signatory=os.getenv("LETTERHEAD_SIGNATORY", "I-Voice"),
)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

registry = WorkspaceRegistry(database=db, local_dir=LOCAL_STORE_DIR, letterhead=LETTERHEAD)

app = FastAPI(title="I-Voice Invoicing API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Notice-Level", "X-Notice-Message"],
)


# Utility helpers
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AuthRequest(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None


class PartyCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    gst_number: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    hsn: Optional[str] = None
    unit: Optional[str] = None
    rate: Decimal = Field(Decimal("0"), ge=0)
    gst_rate: Optional[Decimal] = Field(None, ge=0)
    stock: int = Field(0, ge=0)


def _out(model: BaseModel) -> dict:
    return model.model_dump(mode="json")


def _reply(notice: Notice, data=None) -> dict:
    return {"notice": notice.model_dump(), "data": data}


def _pdf_response(filename: str, content: bytes, notice: Notice, disposition: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'{disposition}; filename="{filename}"',
            "X-Notice-Level": notice.level,
            "X-Notice-Message": notice.message,
        },
    )


def _describe(errors) -> str:
    first = errors[0]
    field = ".".join(str(part) for part in first["loc"] if part != "body")
    return f"Invalid {field or 'request'}: {first['msg']}"


@app.exception_handler(InvoicingError)
async def invoicing_error_handler(request: Request, exc: InvoicingError):
    notice = Notice(level=exc.level, message=str(exc))
    return JSONResponse(status_code=exc.status_code, content=_reply(notice))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    notice = Notice(level="error", message=_describe(exc.errors()))
    return JSONResponse(status_code=ValidationError.status_code, content=_reply(notice))


# Auth helpers

def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    credentials_exception = HTTPException(
        status_code=401,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    return CurrentUser(id=user_id, name=payload.get("name") or user_id)


def get_workspace(user: CurrentUser = Depends(get_current_user)) -> Workspace:
    return registry.get(user)


@app.get("/")
def read_root():
    return {"message": "I-Voice Invoicing API"}


@app.get("/test")
def test_database():
    info = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "❌ Not Set",
        "database_name": "❌ Not Set",
        "connection_status": "Not Connected",
        "local_store": LOCAL_STORE_DIR,
        "collections": []
    }
    try:
        if db is not None:
            info["database"] = "✅ Connected & Working"
            info["database_url"] = "✅ Set"
            info["database_name"] = db.name
            info["connection_status"] = "Connected"
            info["collections"] = db.list_collection_names()
    except Exception as e:
        info["database"] = f"⚠️ Error: {str(e)[:80]}"
    return info


# Helper to accept either JSON or form for legacy compatibility
async def parse_auth_request(request: Request) -> AuthRequest:
    content_type = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
        form = await request.form()
        email = (form.get("username") or form.get("email") or "").lower()
        password = form.get("password") or ""
        data = {"email": email, "password": password, "name": form.get("name")}
    else:
        data = await request.json()
    try:
        return AuthRequest(**data)
    except SchemaError as e:
        raise ValidationError(_describe(e.errors())) from e


def _require_user_store():
    if db is None:
        raise HTTPException(status_code=503, detail="User store not configured")


# Auth routes
@app.post("/auth/register", response_model=Token)
async def register(request: Request):
    _require_user_store()
    auth = await parse_auth_request(request)

    existing = get_documents("user", {"email": auth.email}, limit=1)
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")

    name = auth.name or auth.email.split("@")[0]
    user = User(email=auth.email, name=name, password_hash=get_password_hash(auth.password))
    user_id = create_document("user", user)

    token = create_access_token({"sub": user_id, "name": name})
    return Token(access_token=token)


@app.post("/auth/token", response_model=Token)
async def login(request: Request):
    _require_user_store()
    auth = await parse_auth_request(request)

    user_docs = get_documents("user", {"email": auth.email, "is_active": True}, limit=1)
    if not user_docs:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    user = user_docs[0]
    if not verify_password(auth.password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": str(user["_id"]), "name": user.get("name")})
    return Token(access_token=token)


@app.get("/session")
def open_session(user: CurrentUser = Depends(get_current_user)):
    ws = registry.get(user)
    notice = ws.load()
    return _reply(notice, {"user": _out(user), "offline": ws.state.offline})


# Parties
@app.post("/parties")
def create_party(party: PartyCreate, ws: Workspace = Depends(get_workspace)):
    saved, notice = ws.add_party(Party(**party.model_dump()))
    return _reply(notice, _out(saved))


@app.get("/parties")
def list_parties(ws: Workspace = Depends(get_workspace)):
    rows = []
    with ws.lock:
        for party in ws.catalog.list_parties():
            rows.append({**_out(party), "outstanding": str(reports.party_outstanding(ws.state, party.id))})
    return _reply(Notice(level="info", message=f"{len(rows)} parties"), rows)


@app.get("/parties/search")
def search_parties(q: str = "", ws: Workspace = Depends(get_workspace)):
    with ws.lock:
        found = [_out(p) for p in ws.catalog.search_parties(q)]
    return _reply(Notice(level="info", message=f"{len(found)} matching parties"), found)


# Items
@app.post("/items")
def create_item(item: ItemCreate, ws: Workspace = Depends(get_workspace)):
    saved, notice = ws.add_item(Item(**item.model_dump()))
    return _reply(notice, _out(saved))


@app.get("/items")
def list_items(ws: Workspace = Depends(get_workspace)):
    with ws.lock:
        rows = [_out(i) for i in ws.catalog.list_items()]
    return _reply(Notice(level="info", message=f"{len(rows)} items"), rows)


@app.get("/items/search")
def search_items(q: str = "", ws: Workspace = Depends(get_workspace)):
    with ws.lock:
        found = [_out(i) for i in ws.catalog.search_items(q)]
    return _reply(Notice(level="info", message=f"{len(found)} matching items"), found)


# Invoices
@app.get("/invoices")
def list_invoices(ws: Workspace = Depends(get_workspace)):
    rows = []
    for row in ws.invoice_list():
        row["invoice"] = _out(row["invoice"])
        rows.append(row)
    return _reply(Notice(level="info", message=f"{len(rows)} invoices"), rows)


@app.get("/invoices/draft")
def new_invoice_draft(mode: str = "auto", ws: Workspace = Depends(get_workspace)):
    if mode not in ("auto", "manual"):
        raise HTTPException(status_code=400, detail="mode must be 'auto' or 'manual'")
    draft = ws.new_draft(mode)
    return _reply(Notice(level="info", message=f"New invoice #{draft.invoice_number}"), _out(draft))


@app.post("/invoices")
def save_invoice(draft: InvoiceDraft, ws: Workspace = Depends(get_workspace)):
    saved, notice = ws.save_invoice(draft)
    return _reply(notice, _out(saved))


@app.delete("/invoices/{invoice_id}")
def delete_invoice(invoice_id: str, confirm: bool = False, ws: Workspace = Depends(get_workspace)):
    invoice, notice = ws.delete_invoice(invoice_id, confirmed=confirm)
    return _reply(notice, {"id": invoice.id, "deleted": confirm})


@app.get("/invoices/{invoice_id}/pdf")
def view_invoice_pdf(invoice_id: str, ws: Workspace = Depends(get_workspace)):
    filename, content, notice = ws.render_invoice(invoice_id)
    return _pdf_response(filename, content, notice, "inline")


@app.get("/invoices/{invoice_id}/share")
def share_invoice_pdf(invoice_id: str, ws: Workspace = Depends(get_workspace)):
    filename, content, notice = ws.render_invoice(invoice_id, share=True)
    return _pdf_response(filename, content, notice, "attachment")


# Dashboard and reports
@app.get("/dashboard")
def get_dashboard(ws: Workspace = Depends(get_workspace)):
    return _reply(Notice(level="info", message="Dashboard updated"), ws.dashboard())


@app.get("/reports/sales")
def get_sales_report(ws: Workspace = Depends(get_workspace)):
    return _reply(Notice(level="info", message="Sales Report"), ws.report(reports.sales_report))


@app.get("/reports/parties")
def get_party_report(ws: Workspace = Depends(get_workspace)):
    data = ws.report(reports.party_report)
    message = "Party Report" if data["has_outstanding"] else "No outstanding amounts found."
    return _reply(Notice(level="info", message=message), data)


@app.get("/reports/items")
def get_item_report(ws: Workspace = Depends(get_workspace)):
    data = ws.report(reports.item_report)
    message = "Inventory Report" if data["items"] else "No items in inventory."
    return _reply(Notice(level="info", message=message), data)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
