"""Fixed choices offered by the onboarding form."""

from __future__ import annotations

# Colleges at Qassim University
QU_COLLEGES = (
    "كلية الحاسب",
    "كلية الطب",
    "كلية طب الأسنان",
    "كلية الصيدلة",
    "كلية الهندسة",
    "كلية العلوم",
    "كلية العمارة والتخطيط",
    "كلية الزراعة والطب البيطري",
    "كلية الشريعة والدراسات الإسلامية",
    "كلية اللغة العربية والدراسات الاجتماعية",
    "كلية الاقتصاد والإدارة",
    "كلية العلوم الطبية التطبيقية",
    "كلية التمريض",
    "كلية التربية الدينية",
)

COLLEGE_OTHER = "other"

UNI_LEVELS = tuple(range(1, 11))

GENDERS = ("Male", "Female")

METADATA_UPDATE_FAILED_MESSAGE = "There was an error updating your data, please try again later"

SESSION_REFRESH_FAILED_MESSAGE = "Your data was saved but your session could not be refreshed, please sign in again"
