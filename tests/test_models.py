"""
Unit tests for the crash list projection.
"""

from apptics_mcp.models import CrashList


class TestCrashList:

    def test_projects_data_array(self):
        payload = {
            "data": [
                {
                    "AppVersion": "3.1",
                    "Status": 0,
                    "UniqueMessageID": "u1",
                    "AppVersionID": 12,
                    "PID": 7,
                    "ExceptionType": "NullPointerException",
                    "OS": "Android",
                    "CrashCount": "42",
                    "UsersCount": "10",
                    "DevicesCount": "11",
                    "Exception": "java.lang.NullPointerException",
                }
            ],
            "total": 1,
        }

        crashes = CrashList.from_response(payload)

        assert len(crashes.data) == 1
        record = crashes.data[0]
        assert record.UniqueMessageID == "u1"
        assert record.CrashCount == "42"
        assert record.PID == 7

    def test_unknown_fields_are_kept(self):
        crashes = CrashList.from_response({"data": [{"UniqueMessageID": "u1", "Screen": "Home"}]})

        assert crashes.model_dump()["data"][0]["Screen"] == "Home"

    def test_missing_data_gives_empty_list(self):
        assert CrashList.from_response({"message": "no crashes"}).data == []
        assert CrashList.from_response([1, 2]).data == []
