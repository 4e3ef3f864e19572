import json

import pandas as pd
import streamlit as st

from pii_detection.pii_patterns import Policy
from pii_masking.errors import ConfigurationError, ResourceExhaustedError
from pii_masking.pii_masker import PiiMasker

# Page config
st.set_page_config(
    page_title="Structured PII Masker",
    page_icon="🛡",
    layout="wide"
)

# Title
st.title("🛡 Structured PII Masker")
st.markdown("Upload or paste a JSON document to mask personal and secret values before sharing it.")

# Inputs
uploaded_file = st.file_uploader(
    "Upload a JSON file",
    type=["json"]
)
pasted_text = st.text_area("...or paste JSON here", height=180)

policy_label = st.radio(
    "Policy",
    ["Strict (secrets and IDs)", "Permissive (also contact and location data)"],
    horizontal=True,
)
preserve_raw = st.text_input("Always keep these fields (comma separated)", "")
redact_raw = st.text_input("Always mask these fields (comma separated)", "")

# Mask button
mask_button = st.button("🚀 Mask Document")


def _split_fields(raw: str) -> list:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _read_document_text():
    """Prefer the uploaded file; fall back to the text area."""
    if uploaded_file is not None:
        return uploaded_file.getvalue().decode("utf-8", errors="replace")
    if pasted_text.strip():
        return pasted_text
    return None


def mask_document(text: str, policy: Policy, preserve_fields: list, redact_fields: list):
    """
    Run the masking pipeline on a JSON document.

    Returns:
        masked: the masked document
        df: DataFrame with columns [Path, Channel, Category]
    """
    document = json.loads(text)

    masker = PiiMasker(
        policy,
        preserve_fields=preserve_fields,
        redact_fields=redact_fields,
    )
    result = masker.mask_with_findings(document)

    # Build table for display; findings carry locations only, never values.
    display_rows = [
        {
            "Path": finding.path or "<root>",
            "Channel": finding.channel.title(),
            "Category": finding.category,
        }
        for finding in result.findings
    ]
    df = pd.DataFrame(display_rows, columns=["Path", "Channel", "Category"])
    return result.masked, df


# When Mask is clicked
if mask_button:

    text = _read_document_text()
    if text is None:
        st.warning("⚠️ Please upload or paste a JSON document before masking.")
    else:
        policy = Policy.STRICT if policy_label.startswith("Strict") else Policy.PERMISSIVE
        try:
            masked, df = mask_document(
                text,
                policy,
                _split_fields(preserve_raw),
                _split_fields(redact_raw),
            )
        except json.JSONDecodeError as e:
            st.error(f"The document is not valid JSON: {e}")
        except ConfigurationError as e:
            st.error(f"Invalid masking options: {e}")
        except ResourceExhaustedError as e:
            st.error(f"The document is nested too deeply to mask: {e}")
        else:
            # Layout columns
            col1, col2 = st.columns([2, 1])

            with col1:
                st.subheader("📋 Masked Document")
                st.json(masked)
                st.download_button(
                    "Download masked JSON",
                    data=json.dumps(masked, indent=2, ensure_ascii=False),
                    file_name="masked.json",
                    mime="application/json",
                )

            with col2:
                st.subheader("🚨 Masked Fields")
                st.metric(label="Masked values", value=len(df))
                if df.empty:
                    st.success("🟢 Nothing sensitive found")
                else:
                    st.dataframe(df, use_container_width=True)

            st.caption("Nothing is stored: the document only lives for this request.")

else:
    st.info("Upload or paste a JSON document and click 'Mask Document' to begin.")
