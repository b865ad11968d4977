from marshmallow import Schema, fields, validate, EXCLUDE

DIGEST_TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


class UserSettingsUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    daily_digest_enabled = fields.Boolean(data_key="dailyDigestEnabled")
    daily_digest_time = fields.String(
        data_key="dailyDigestTime",
        validate=validate.Regexp(DIGEST_TIME_PATTERN, error="Must be HH:MM (24h)."),
    )
    timezone = fields.String(validate=validate.Length(min=1, max=64))


class UserSettingsOutSchema(Schema):
    daily_digest_enabled = fields.Boolean(data_key="dailyDigestEnabled")
    daily_digest_time = fields.String(data_key="dailyDigestTime")
    timezone = fields.String()
