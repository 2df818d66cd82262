"""Message templates sent to people over WhatsApp (Indonesian)."""

from datetime import date, time
from enum import Enum

from attendance_bot.domain.attendance import AttendanceStatus

DECLINE_KEYWORD = "tidak"

_DAY_NAMES = ("Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu")
_MONTH_NAMES = (
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
)


class PhotoRequestKind(Enum):
    """Which photo request message to send."""

    FIRST = "first"
    SUBSEQUENT = "subsequent"
    CHANGE = "change"


PHOTO_RECEIVED = (
    "Terima kasih! Foto profil Anda telah berhasil diperbarui. 👍\n\n"
    "Saya akan kirimkan QR Code baru Anda..."
)
PHOTO_DECLINED = (
    "Baik, terima kasih atas konfirmasinya. Jika di kemudian hari Anda ingin "
    "menggunakan foto, silakan hubungi admin."
)
SYSTEM_ERROR = "Maaf, terjadi kesalahan di sistem kami."
TOKEN_UPDATED_CAPTION = (
    "Berikut adalah QR Code baru Anda dengan foto profil yang telah diperbarui. "
    "Gunakan yang ini untuk absensi selanjutnya ya!"
)


def format_long_date(value: date) -> str:
    """Format a date like 'Senin, 3 Maret'."""
    return f"{_DAY_NAMES[value.weekday()]}, {value.day} {_MONTH_NAMES[value.month - 1]}"


def scan_confirmation(
    name: str, scan_time: time, status: AttendanceStatus, session_name: str
) -> str:
    return (
        "✅ Absensi berhasil!\n\n"
        f"Nama: *{name}*\n"
        f"Waktu: {scan_time.strftime('%H.%M.%S')}\n"
        f"Status: *{status.value}*\n"
        f"Sesi: {session_name}"
    )


def manual_notice(name: str, status: AttendanceStatus, on_date: date) -> str | None:
    """Return the notice for a manually set status.

    ON_TIME and LATE are only ever produced by scans; setting them by hand
    writes the record without notifying anyone.
    """
    formatted = format_long_date(on_date)
    if status is AttendanceStatus.MANUAL_PRESENT:
        return (
            "✅ Absensi Manual berhasil!\n\n"
            f"Nama: *{name}*\n"
            "Status: *Hadir (Manual)*\n"
            f"Tanggal: {formatted}"
        )
    if status is AttendanceStatus.SICK:
        return (
            "ℹ️ Pemberitahuan Absensi\n\n"
            f"Nama: *{name}* telah dicatat *Sakit* untuk {formatted}. "
            "Semoga lekas sembuh."
        )
    if status is AttendanceStatus.EXCUSED:
        return (
            "ℹ️ Pemberitahuan Absensi\n\n"
            f"Nama: *{name}* telah dicatat *Izin* untuk {formatted}."
        )
    if status is AttendanceStatus.UNEXCUSED_ABSENT:
        return (
            "⚠️ Peringatan Absensi!\n\n"
            f"Nama: *{name}* tercatat *ALFA* untuk {formatted}. "
            "Mohon konfirmasi jika ada kekeliruan."
        )
    return None


def photo_request(name: str, kind: PhotoRequestKind) -> str:
    if kind is PhotoRequestKind.CHANGE:
        return (
            f"Halo {name},\n\n"
            "Admin telah memulai permintaan untuk mengganti foto profil Anda di "
            "sistem absensi.\n\n"
            "Silakan balas pesan ini dengan mengirimkan *satu foto baru* Anda. "
            f"Jika batal, cukup balas dengan kata: *{DECLINE_KEYWORD}*"
        )
    if kind is PhotoRequestKind.FIRST:
        return (
            "Apakah Anda ingin menggunakan foto profil asli di QR Code? "
            "Jika ya, silakan kirim fotonya sekarang. "
            f"Jika tidak, balas pesan ini dengan kata: *{DECLINE_KEYWORD}*"
        )
    return (
        f"Halo {name},\n\n"
        "Sistem absensi kami memerlukan foto profil Anda.\n\n"
        "Silakan balas pesan ini dengan mengirimkan *satu foto terbaik* Anda. "
        f"Jika tidak ingin, balas pesan ini dengan kata: *{DECLINE_KEYWORD}*"
    )


def token_caption(name: str) -> str:
    return (
        f"Halo {name},\n\n"
        "Ini adalah QR Code pribadi Anda untuk absensi. Mohon simpan baik-baik."
    )
