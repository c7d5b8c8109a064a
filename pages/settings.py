"""
Settings page
Manage API keys, provider configuration and local storage
"""

import streamlit as st
from utils.config import (
    load_api_key, save_api_key, remove_api_key, CONFIG_DIR, CONFIG_FILE, DB_PATH,
    STORAGE_QUOTA_BYTES, get_current_provider, set_current_provider, SUPPORTED_PROVIDERS
)
from utils.providers import validate_api_key, get_provider_info, list_available_models
from components.app_state import get_store

# Page header
st.markdown("# ⚙️ Settings")
st.markdown("Manage your StudyMap configuration")

if st.button("← Back to Dashboard", key="back_to_dashboard"):
    st.switch_page("pages/dashboard.py")

st.markdown("---")

# AI Provider section
st.markdown("## 🤖 AI Provider Configuration")

current_provider = get_current_provider()
provider_info = get_provider_info(current_provider)
provider_name = provider_info.get('name', current_provider.title())

col1, col2 = st.columns([1, 1])

with col1:
    st.markdown("### Current Provider")
    st.info(f"**{provider_name}**")
    st.markdown(provider_info.get('description', ''))

    new_provider = st.selectbox(
        "Switch Provider:",
        options=SUPPORTED_PROVIDERS,
        index=SUPPORTED_PROVIDERS.index(current_provider),
        format_func=lambda x: get_provider_info(x).get("name", x.title()),
        help="Select your preferred AI provider"
    )

    if new_provider != current_provider:
        if st.button("🔄 Switch Provider", type="secondary"):
            set_current_provider(new_provider)
            st.session_state.api_key = load_api_key(new_provider)
            st.success(f"Switched to {get_provider_info(new_provider).get('name', new_provider)}")
            st.rerun()

with col2:
    st.markdown("### Models")
    for task, model in list_available_models(current_provider).items():
        st.code(f"{task}: {model}")

st.markdown("---")

# API Key section
st.markdown(f"## 🔑 {provider_name} API Key")

current_key = st.session_state.get('api_key') or load_api_key(current_provider)
prefix = provider_info.get('api_key_prefix', 'sk-')


def save_key_form(form_key: str, label: str):
    with st.form(form_key):
        new_key = st.text_input(
            label,
            type="password",
            placeholder=prefix + "...",
            help=f"Your API key will be stored in {CONFIG_FILE}"
        )
        if st.form_submit_button("💾 Save API Key", type="primary"):
            if new_key and new_key.startswith(prefix):
                with st.spinner("Validating API key..."):
                    if validate_api_key(new_key, current_provider):
                        save_api_key(new_key, current_provider)
                        st.session_state.api_key = new_key
                        st.session_state.show_update_key = False
                        st.success("✅ API key saved successfully!")
                        st.rerun()
                    else:
                        st.error(f"❌ Invalid API key for {provider_name}")
            else:
                st.error(f"Please enter a valid {provider_name} API key (should start with '{prefix}')")


if current_key:
    st.success("✅ API Key is configured")

    masked_key = current_key[:7] + "..." + current_key[-4:]
    st.code(masked_key)

    col1, col2 = st.columns(2)

    with col1:
        if st.button("🔄 Update API Key", use_container_width=True):
            st.session_state.show_update_key = True

    with col2:
        if st.button("🗑️ Remove API Key", type="secondary", use_container_width=True):
            remove_api_key(current_provider)
            st.session_state.api_key = None
            st.success("API key removed successfully!")
            st.rerun()

    if st.session_state.get('show_update_key', False):
        save_key_form("update_api_key", "New API Key:")
else:
    st.warning("⚠️ No API Key configured")
    st.markdown(f"""
    StudyMap needs a {provider_name} API key to:
    - Turn your syllabus into a mind map
    - Write quizzes, flashcards and study plans
    - Power the AI tutor
    """)
    save_key_form("new_api_key", f"Enter your {provider_name} API key:")
    st.link_button("🔗 Get API Key", provider_info.get('signup_url', '#'))

# Storage location section
st.markdown("---")
st.markdown("## 📁 Data Storage")

st.info(f"**Configuration directory:** `{CONFIG_DIR}`")

used = get_store().used_bytes()
st.markdown(f"**Saved syllabi use:** {used / (1024 * 1024):.1f} MB of {STORAGE_QUOTA_BYTES / (1024 * 1024):.0f} MB")
st.progress(min(1.0, used / STORAGE_QUOTA_BYTES) if STORAGE_QUOTA_BYTES else 0.0)

with st.expander("View storage details"):
    st.code(f"""
{CONFIG_DIR}/
├── .env.json          # API key storage
└── {DB_PATH.name}        # Syllabi, source texts and tutor chats
    """)

# Help section
st.markdown("---")
st.markdown("## 🆘 Need Help?")

with st.expander("Frequently Asked Questions"):
    st.markdown(f"""
    **Q: Where is my data stored?**

    A: Everything is stored locally in `{CONFIG_DIR}`. Only your syllabus content and questions are sent to your chosen AI provider.

    **Q: Is my username a password?**

    A: No. It only keeps different people's syllabi apart on this computer.

    **Q: What happens when storage is full?**

    A: New syllabi can't be saved until you delete old ones from the History page.
    """)
