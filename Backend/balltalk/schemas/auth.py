from pydantic import BaseModel

class LoginPayload(BaseModel):
    email: str
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class EmailCheckResponse(BaseModel):
    email: str
    exists: bool
