app_name = "nepali_calendar"
app_title = "Nepali Calendar"
app_publisher = "Nepali Calendar Contributors"
app_description = "Bikram Sambat date conversion, validation and date-picker state for Frappe apps."
app_email = "maintainers@example.com"
app_license = "MIT"

# Boot
boot_session = "nepali_calendar.boot.boot_session"

# Fixtures / Data
fixtures = []
