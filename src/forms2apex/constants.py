DRAFT_BANNER_RULE = "-- ============================================"
DRAFT_BANNER_TITLE = "-- DRAFT - REVIEW REQUIRED"
TARGET_SUFFIX = "_apex"
PACKAGE_SEPARATOR = "  -- ----------------------------------------"
