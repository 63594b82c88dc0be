# folio_bot/strings.py

# --- General Use Strings ---
# {variable_name} placeholders are filled in by the handlers. Values typed by the
# admin are HTML-escaped before formatting.
# HTML ParseMode: <b>bold</b>, <i>italics</i>, <code>monospace</code>

NOT_AUTHORIZED = "Sorry, this is a private bot. You are not authorized."
ERROR_OCCURRED = "💔 Oops! An unexpected error occurred. The current action was cancelled, please start again."
STORE_ERROR = "❌ Error: {error}\n\nThe current action was cancelled, please start again."
UNEXPECTED_STATE = "🤷 Unexpected state. Your previous process was cancelled."
UNKNOWN_COMMAND = "❓ Unknown command <code>/{command}</code>. Type /help."
IDLE_TEXT_GUIDANCE = "🤔 Not sure what to do with that. Send a command to start (see /help), or send a photo/video to add it."
ACTION_CANCELLED = "✅ Cancelled. Nothing was changed."
NOTHING_TO_CANCEL = "✅ Nothing to cancel."

HELP_MESSAGE = """
👋 <b><u>Welcome, Admin!</u></b>

<b>Profile:</b>
/setname - portfolio name
/settitle - headline under the name
/setdesc - about text
/setphone - WhatsApp number
/setcall - "Call Now" number
/setemail - contact email
/setphoto - profile photo

<b>Media:</b>
Send a <b>photo</b> or <b>video</b> to add it. Start the caption with
{categories} to pick a category; the rest of the caption is the project name.
/add - add one YouTube/Vimeo link
/addbatch - add many links at once (one per line)
/list - show all media with their IDs
/edittitle - rename a project
/editnote - change a media note
/delete - remove a media item

<b>Site:</b>
/pause - show the "Under Maintenance" page
/resume - make the site live again

<b>Security:</b>
/block - block an IP
/unblock - unblock an IP
/listblocked - show blocked IPs

/cancel - stop whatever you are doing
<i>Tip: most commands take their value inline, e.g. <code>/block 203.0.113.7</code></i>
"""

# --- Profile ---
PROMPT_NAME = "✏️ Send the new <b>name</b>."
PROMPT_TITLE = "✏️ Send the new <b>title</b>."
PROMPT_DESC = "✏️ Send the new <b>description</b>."
PROMPT_PHONE = "📱 Send the new <b>WhatsApp phone</b> number (with country code, e.g. +91 90000 00000)."
PROMPT_CALL = "📞 Send the new <b>Call Now</b> phone number."
PROMPT_EMAIL = "📧 Send the new <b>email</b> address."
PROMPT_PROFILE_PHOTO = "🖼️ Send the new <b>profile photo</b> (as a photo, not a file)."

INVALID_EMPTY = "⚠️ That was empty. {prompt}"
INVALID_PHONE = "⚠️ That doesn't look like a phone number (7-15 digits). Try again or /cancel."
INVALID_EMAIL = "⚠️ That doesn't look like an email address. Try again or /cancel."
EXPECTING_PROFILE_PHOTO = "🖼️ I'm waiting for a <b>photo</b> for your profile. Send one or /cancel."

NAME_UPDATED = "✅ Name updated to: <b>{value}</b>"
TITLE_UPDATED = "✅ Title updated to: <b>{value}</b>"
DESC_UPDATED = "✅ Description updated!"
PHONE_UPDATED = "✅ WhatsApp Phone updated to: <code>{value}</code>"
CALL_UPDATED = "✅ Call Now Phone updated to: <code>{value}</code>"
EMAIL_UPDATED = "✅ Email updated to: <code>{value}</code>"
PROFILE_PHOTO_UPDATED = "✅ Profile photo updated!"

# --- Links ---
PROMPT_SINGLE_LINK = "🔗 Send a <b>YouTube</b> or <b>Vimeo</b> link."
PROMPT_BATCH_LINKS = "🔗 Send your <b>YouTube</b>/<b>Vimeo</b> links, one per line."
INVALID_LINK = "⚠️ That isn't a YouTube or Vimeo video link. Send another one or /cancel."
NO_VALID_LINKS = "⚠️ None of those lines was a YouTube or Vimeo video link. Send the list again or /cancel."
LINK_ACCEPTED = "👍 Got {provider} video <code>{external_id}</code>.\n\n{prompt}"
BATCH_ACCEPTED = "👍 Found <b>{count}</b> valid link(s){dropped}.\n\n{prompt}"
BATCH_DROPPED = ", ignored {count} line(s)"
PROMPT_CATEGORY = "🏷️ Which <b>category</b>? One of: {categories}"
INVALID_CATEGORY = "⚠️ <code>{value}</code> is not a category.{suggestion} Choose one of: {categories}"
CATEGORY_SUGGESTION = " Did you mean <b>{category}</b>?"
PROMPT_PROJECT = "📁 Category <b>{category}</b>. Now send the <b>project name</b>."
INVALID_PROJECT = "⚠️ The project name can't be empty. Send it again or /cancel."
LINK_ADDED = "✅ {provider} video added to \"{category}\" as <b>{project}</b>.\nID: <code>{unique_id}</code>"
BATCH_ADDED = "✅ Added <b>{count}</b> video(s) to \"{category}\" as <b>{project}</b>."

# --- Uploaded media ---
PHOTO_ADDED = "✅ Photo added to \"{category}\" gallery.\nID: <code>{unique_id}</code>"
VIDEO_ADDED = "✅ Video added to \"{category}\" gallery.\nID: <code>{unique_id}</code>"

# --- Catalog maintenance ---
NO_MEDIA = "No media found."
MEDIA_LIST_TITLE = "<b>All Media ({count} items):</b>"
MEDIA_LIST_ITEM = "<b>{project}</b> ({category}, {kind})\nNote: {note}\nID: <code>{unique_id}</code>"
PROMPT_DELETE_ID = "🗑️ Send the <b>ID</b> of the media to delete (see /list)."
MEDIA_DELETED = "✅ Media <code>{unique_id}</code> deleted."
MEDIA_NOT_FOUND_RETRY = "❌ Media <code>{unique_id}</code> not found. Send another ID or /cancel."
MEDIA_NOT_FOUND = "❌ Media <code>{unique_id}</code> not found. Nothing was changed."
PROMPT_EDIT_ID = "✏️ Send the <b>ID</b> of the media whose {field} you want to change (see /list)."
PROMPT_EDIT_VALUE = "✏️ Current {field}: <i>{current}</i>\n\nSend the new {field}."
INVALID_EDIT_VALUE = "⚠️ The new {field} can't be empty. Send it again or /cancel."
MEDIA_UPDATED = "✅ {field} of <code>{unique_id}</code> updated to: <b>{value}</b>"
FIELD_LABELS = {"project_name": "project name", "note": "note"}

# --- Site ---
SITE_PAUSED = "⏸️ Website is now PAUSED."
SITE_RESUMED = "▶️ Website is now LIVE."

# --- Security ---
PROMPT_BLOCK_IP = "🚫 Send the <b>IP address</b> to block."
PROMPT_UNBLOCK_IP = "✅ Send the <b>IP address</b> to unblock."
INVALID_IP = "⚠️ <code>{value}</code> is not a valid IP address. Try again or /cancel."
IP_BLOCKED = "🚫 IP <code>{ip}</code> blocked."
IP_ALREADY_BLOCKED = "🚫 IP <code>{ip}</code> was already blocked."
IP_UNBLOCKED = "✅ IP <code>{ip}</code> unblocked."
IP_NOT_BLOCKED = "🤷 IP <code>{ip}</code> was not blocked."
NO_BLOCKED_IPS = "No IPs are currently blocked."
BLOCKED_IPS_TITLE = "<b>Blocked IPs:</b>"

# --- Admin notices from the website ---
VIDEO_CLICK_NOTICE = "▶️ Video Clicked: <b>{project}</b>\n(Note: {note})\nFrom IP: <code>{ip}</code>"
PHOTO_CLICK_NOTICE = "🖼️ Image Clicked: <b>{project}</b>\n(Note: {note})\nFrom IP: <code>{ip}</code>"
PAGE_VIEW_NOTICE = "🔔 Page View / Refresh\nFrom IP: <code>{ip}</code>"

# --- Web responses ---
MAINTENANCE_PAGE = (
    '<html lang="en"><head><title>Under Maintenance</title><style>'
    "body{font-family:sans-serif;background:#050507;color:#e0e0e0;display:flex;justify-content:center;"
    "align-items:center;height:100vh;margin:0;}div{text-align:center;border:1px solid rgba(255,255,255,0.1);"
    "padding:40px;border-radius:16px;background:rgba(16,16,22,0.6);}h1{color:#fff;}p{color:#888;}"
    "</style></head><body><div><h1>Site Under Maintenance</h1>"
    "<p>This portfolio is temporarily offline. Please check back soon.</p></div></body></html>"
)
FORBIDDEN = "Forbidden"
