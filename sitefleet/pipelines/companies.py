from ..models.models import COMPANY_ROLES, Company, CompanyUser, User
from ..schemas.identity import CompanyIn, CompanyUserIn
from ..services.envelope import iso
from ..services.integrity import Reference, Unique
from ..services.normalization import clean_text, digits, or_default, to_bool, to_int, trim, upper_code
from ..services.pipeline import EntityPipeline
from ..services.validation import CODE_MAX, NAME_MAX, Validator


# ---------- companies ----------
def validate_company(data: dict) -> list:
    v = Validator(data)
    v.required("name", "Company name")
    v.positive_id("id", "Company ID")
    v.text("name", "Company name", NAME_MAX)
    v.text("tenantCode", "Tenant code", CODE_MAX)
    v.boolean("isActive", "Active status")
    return v.errors


def normalize_company(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "name": clean_text(data.get("name")),
        "tenantCode": upper_code(data.get("tenantCode")),
        "address": trim(data.get("address")),
        "phone": digits(data.get("phone")),
        "isActive": to_bool(data.get("isActive"), True),
    }


def serialize_company(c: Company) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "tenantCode": c.tenant_code,
        "address": c.address,
        "phone": c.phone,
        "isActive": c.is_active,
        "createdAt": iso(c.created_at),
        "updatedAt": iso(c.updated_at),
    }


companies = EntityPipeline(
    model=Company,
    name="company",
    entity="Company",
    validate=validate_company,
    normalize=normalize_company,
    schema=CompanyIn,
    serialize=serialize_company,
    uniques=[Unique("tenantCode", "tenant_code", "Company with tenant code '{value}' already exists", "tenant code")],
    snapshot=("id", "name", "tenantCode"),
)


# ---------- company user roles ----------
def validate_company_user(data: dict) -> list:
    v = Validator(data)
    v.required("companyId", "Company ID")
    v.required("userId", "User ID")
    v.positive_id("id", "Company user ID")
    v.positive_id("companyId", "Company ID")
    v.positive_id("userId", "User ID")
    v.one_of("role", "Role", COMPANY_ROLES)
    v.boolean("isPrimary", "Primary flag")
    return v.errors


def normalize_company_user(data: dict) -> dict:
    role = trim(data.get("role"))
    return {
        "id": to_int(data.get("id")),
        "companyId": to_int(data.get("companyId")),
        "userId": to_int(data.get("userId")),
        "role": or_default(role.lower() if role else None, "worker"),
        "isPrimary": to_bool(data.get("isPrimary"), False),
    }


def serialize_company_user(cu: CompanyUser) -> dict:
    return {
        "id": cu.id,
        "companyId": cu.company_id,
        "userId": cu.user_id,
        "role": cu.role,
        "isPrimary": cu.is_primary,
        "createdAt": iso(cu.created_at),
    }


# The (company, user, role) triple is guarded by its storage constraint
company_users = EntityPipeline(
    model=CompanyUser,
    name="company_user",
    entity="Company user",
    validate=validate_company_user,
    normalize=normalize_company_user,
    schema=CompanyUserIn,
    serialize=serialize_company_user,
    references=[Reference("companyId", Company, "Company"), Reference("userId", User, "User")],
    snapshot=("id", "companyId", "userId", "role"),
)
