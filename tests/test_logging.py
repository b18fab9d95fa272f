import logging
import uuid

import pytest


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        response = client.get("/health")
        request_id = response["X-Request-ID"]
        parsed = uuid.UUID(request_id, version=4)
        assert str(parsed) == request_id

    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        found = any(custom_id in record.getMessage() for record in caplog.records)
        assert found, (
            f"correlation_id '{custom_id}' not found in log records: "
            f"{[r.getMessage() for r in caplog.records]}"
        )


class TestSensitiveDataMasking:
    def test_gstin_masked_in_log_output(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "buyer": "GSTIN 27ABCDE1234F1Z5 on file"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "27ABCDE1234F1Z5" not in result["buyer"]
        assert "***MASKED***" in result["buyer"]

    def test_pan_masked_in_log_output(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "pan": "ABCDE1234F"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "ABCDE1234F" not in result["pan"]
        assert "***MASKED***" in result["pan"]

    @pytest.mark.parametrize("phone", ["9876543210", "+91 9876543210", "+91-9876543210"])
    def test_mobile_number_masked_in_log_output(self, phone):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "contact": f"call {phone} after 5"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "9876543210" not in result["contact"]
        assert "***MASKED***" in result["contact"]

    def test_password_masked_in_log_output(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked_in_log_output(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_signature_key_masked_whole(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "gateway_signature": "deadbeefcafe"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["gateway_signature"] == "***MASKED***"

    def test_non_sensitive_data_unchanged(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "order.created", "order_number": "JT-20260101-00001"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == "JT-20260101-00001"
        assert result["event"] == "order.created"
