from marshmallow import Schema, fields, validate, pre_load, EXCLUDE


class DeviceCodeExchangeSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    code = fields.String(required=True, validate=validate.Length(min=6, max=10))
    device_name = fields.String(data_key="deviceName", load_default=None, allow_none=True,
                                validate=validate.Length(min=1, max=100))

    @pre_load
    def normalize(self, data, **kwargs):
        # Mobile keyboards auto-capitalize inconsistently and may add spaces
        if isinstance(data, dict) and isinstance(data.get("code"), str):
            data = dict(data)
            data["code"] = data["code"].strip().upper()
        return data


class RefreshTokenRequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(required=True, data_key="refreshToken",
                                  validate=validate.Length(min=1, max=512))

