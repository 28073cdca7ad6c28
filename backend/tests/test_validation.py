from signpad.services.validation_service import normalize_submission, validate_input


def _form(**overrides):
    data = {
        "fullName": "Jane Doe",
        "email": "jane@example.com",
        "agreeTerms": "on",
        "signatureMethod": "typed",
        "signatureData": "Jane Doe",
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


class TestValidateInput:
    def test_valid_typed_submission(self):
        assert validate_input(_form()) == []

    def test_valid_drawn_submission(self):
        assert validate_input(_form(signatureMethod="drawn", signatureData="data:image/png;base64,iVBOR")) == []
        assert validate_input(_form(signatureMethod="drawn", signatureData="data:image/webp;base64,UklG")) == []

    def test_all_errors_reported_in_order(self):
        errors = validate_input({})
        assert errors == [
            "Full name is required.",
            "Valid email address is required.",
            "You must agree to the terms and conditions.",
            "Signature is required.",
        ]

    def test_blank_name_after_trim(self):
        assert validate_input(_form(fullName="   ")) == ["Full name is required."]

    def test_invalid_email(self):
        assert validate_input(_form(email="not-an-email")) == ["Valid email address is required."]
        assert validate_input(_form(email="jane@")) == ["Valid email address is required."]

    def test_terms_must_be_checked_sentinel(self):
        expected = ["You must agree to the terms and conditions."]
        assert validate_input(_form(agreeTerms=None)) == expected
        assert validate_input(_form(agreeTerms="yes")) == expected
        assert validate_input(_form(agreeTerms="")) == expected

    def test_drawn_requires_raster_data_url(self):
        assert validate_input(_form(signatureMethod="drawn", signatureData="not-a-data-url")) == [
            "Invalid signature image format."
        ]
        assert validate_input(_form(signatureMethod="drawn", signatureData="data:image/svg+xml;base64,PHN2Zz4=")) == [
            "Invalid signature image format."
        ]

    def test_typed_signature_minimum_length(self):
        assert validate_input(_form(signatureData=" J ")) == [
            "Typed signature must be at least 2 characters long."
        ]

    def test_unknown_signature_method(self):
        assert validate_input(_form(signatureMethod="stamped")) == ["Invalid signature method."]

    def test_signature_optional_when_not_required(self):
        assert validate_input(_form(signatureMethod=None, signatureData=None), require_signature=False) == []


class TestNormalizeSubmission:
    def test_trims_and_lowercases(self):
        record = normalize_submission(
            _form(fullName="  Jane Doe ", email=" Jane@Example.COM ", company="  Acme  "),
            client_ip="10.0.0.1",
            user_agent="pytest",
        )
        assert record.full_name == "Jane Doe"
        assert record.email == "jane@example.com"
        assert record.company == "Acme"
        assert record.signature_text == "Jane Doe"
        assert record.agree_terms is True
        assert record.ip_address == "10.0.0.1"
        assert record.user_agent == "pytest"

    def test_blank_company_is_null(self):
        assert normalize_submission(_form(company="   ")).company is None

    def test_drawn_keeps_no_text(self):
        record = normalize_submission(_form(signatureMethod="drawn", signatureData="data:image/png;base64,AAAA"))
        assert record.signature_method == "drawn"
        assert record.signature_text is None
        assert record.signature_files == {}

    def test_drawn_without_payload_stored_as_typed(self):
        for blank in (None, "", "   "):
            record = normalize_submission(_form(signatureMethod="drawn", signatureData=blank))
            assert record.signature_method == "typed"
            assert record.signature_text is None
