"""NFC Attendance package.

Turns raw NFC tap events (reader, offline mobile replay, realtime mirror)
into one canonical attendance record per employee per day. Organized by
feature modules with a thin Flask controller layer over service/repository
layers.
"""
