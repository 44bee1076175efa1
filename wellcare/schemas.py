# wellcare/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError

ROLES = ("patient", "caregiver", "doctor")
ACCESS_LEVELS = ("view", "full")


# -- identity --------------------------------------------------------------

class PatientAttributesSchema(Schema):
    age = fields.Integer(allow_none=True, validate=validate.Range(min=0, max=130))
    sex = fields.String(allow_none=True)
    conditions = fields.List(fields.String(), allow_none=True)
    emergencyContact = fields.String(allow_none=True)
    emergencyPhone = fields.String(allow_none=True)


class CaregiverAttributesSchema(Schema):
    relationship = fields.String(allow_none=True)


class DoctorAttributesSchema(Schema):
    specialization = fields.String(allow_none=True)


ROLE_ATTRIBUTE_SCHEMAS = {
    "patient": PatientAttributesSchema,
    "caregiver": CaregiverAttributesSchema,
    "doctor": DoctorAttributesSchema,
}


class SignupSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, validate=validate.Length(min=6, max=72))
    name = fields.String(required=True, validate=validate.Length(min=1))
    role = fields.String(required=True, validate=validate.OneOf(ROLES))
    profileData = fields.Dict(load_default=dict)


class LoginSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True)


# -- journals --------------------------------------------------------------

class VitalInSchema(Schema):
    systolic = fields.Integer(required=True, validate=validate.Range(min=0, max=300))
    diastolic = fields.Integer(required=True, validate=validate.Range(min=0, max=200))
    pulse = fields.Integer(allow_none=True, validate=validate.Range(min=0, max=300))
    notes = fields.String(allow_none=True)
    timestamp = fields.DateTime(allow_none=True)


class MedicationInSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1))
    dosage = fields.String(required=True, validate=validate.Length(min=1))
    schedule = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)


class MedicationUpdateSchema(Schema):
    active = fields.Boolean(required=True)


class DoseLogInSchema(Schema):
    medicationId = fields.String(required=True)
    taken = fields.Boolean(load_default=True)
    timestamp = fields.DateTime(allow_none=True)
    notes = fields.String(allow_none=True)


# -- consent ---------------------------------------------------------------

class GrantSchema(Schema):
    granteeEmail = fields.Email(required=True)
    accessLevel = fields.String(required=True, validate=validate.OneOf(ACCESS_LEVELS))


class RevokeSchema(Schema):
    granteeEmail = fields.Email(required=True)


# -- assistant -------------------------------------------------------------

class ChatTurnSchema(Schema):
    role = fields.String(required=True, validate=validate.OneOf(["user", "assistant"]))
    content = fields.String(required=True)


class ChatInSchema(Schema):
    message = fields.String(required=True, validate=validate.Length(min=1))
    conversationHistory = fields.List(fields.Nested(ChatTurnSchema), load_default=list)


class SymptomCheckInSchema(Schema):
    symptoms = fields.List(fields.String(validate=validate.Length(min=1)), required=True,
                           validate=validate.Length(min=1))
    duration = fields.String(allow_none=True)
    severity = fields.Integer(allow_none=True, validate=validate.Range(min=1, max=10))


class FaceAnalysisInSchema(Schema):
    imageData = fields.String(required=True, validate=validate.Length(min=1))
    sessionId = fields.String(allow_none=True)

    @validates_schema
    def _image_is_data_url_or_http(self, data, **kwargs):
        image = data.get("imageData", "")
        if not image.startswith(("data:image/", "http://", "https://")):
            raise ValidationError("imageData must be a data URL or an http(s) URL", "imageData")


class SessionCompleteSchema(Schema):
    sessionId = fields.String(required=True)
