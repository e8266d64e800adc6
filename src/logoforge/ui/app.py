"""Gradio UI for Logoforge."""

import logging
from functools import partial

import gradio as gr

from logoforge.core.config import config

from .handlers import regenerate_slot, submit_design
from .state import close_session

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SLOT_TITLES = ("تصميم عصري بسيط", "تصميم إبداعي فاخر")


def create_ui() -> tuple[gr.Blocks, str]:
    """Create the two-column Gradio UI.

    Returns:
        Tuple of (Gradio Blocks app, custom CSS string)
    """
    custom_css = """
    .variant-card {
        border: 1px solid #e5e7eb;
        border-radius: 12px;
        padding: 12px;
    }
    .rtl { direction: rtl; text-align: right; }
    """

    app = gr.Blocks(title="Logoforge")

    with app:
        # Session state - one DesignSession per user, created on first submit
        session_state = gr.State(None, delete_callback=close_session)

        gr.Markdown(
            """
            # Logoforge
            ### حوّل فكرتك إلى شعار احترافي
            """
        )

        with gr.Row():
            # Left column: the brief
            with gr.Column(scale=1):
                project_name = gr.Textbox(
                    label="اسم المشروع (بالإنجليزية)",
                    placeholder="SKYLINE",
                    max_lines=1,
                )
                input_text = gr.Textbox(
                    label="وصف الهوية البصرية",
                    placeholder="modern minimal, blue tones, tech startup",
                    lines=5,
                )
                generate_btn = gr.Button("✨ توليد التصاميم", variant="primary")
                error_output = gr.Markdown(value="", elem_classes=["rtl"])
                summary_output = gr.Markdown(value="", elem_classes=["rtl"])
                colors_output = gr.HTML(value="")

            # Right column: the two variant cards
            with gr.Column(scale=2):
                with gr.Row():
                    slot_components = []
                    regenerate_buttons = []
                    for placeholder in SLOT_TITLES:
                        with gr.Column(elem_classes=["variant-card"]):
                            title = gr.Markdown(value=f"### {placeholder}")
                            prompt = gr.Textbox(
                                label="Prompt",
                                interactive=False,
                                lines=4,
                            )
                            image = gr.HTML(value="")
                            status = gr.Markdown(value="")
                            regenerate_btn = gr.Button("🔄 إعادة توليد الصورة", size="sm")
                        slot_components.extend([title, prompt, image, status])
                        regenerate_buttons.append(regenerate_btn)

        render_outputs = [error_output, summary_output, colors_output] + slot_components

        # Submission streams updates: text first, then each image as it lands
        generate_btn.click(
            fn=submit_design,
            inputs=[project_name, input_text, session_state],
            outputs=render_outputs + [session_state],
        )

        for index, button in enumerate(regenerate_buttons):
            button.click(
                fn=partial(regenerate_slot, index),
                inputs=[session_state],
                outputs=render_outputs + [session_state],
            )

    return app, custom_css


def main():
    """Main entry point for the UI."""
    logger.info("Starting Logoforge UI...")
    logger.info(f"Gateway: {config.api_base_url} (gateway images: {config.use_gateway_images})")

    app, custom_css = create_ui()

    logger.info(f"Launching Gradio UI on {config.gradio_server_name}:{config.gradio_server_port}")

    app.launch(
        server_name=config.gradio_server_name,
        server_port=config.gradio_server_port,
        share=config.gradio_share,
        show_error=True,
        inbrowser=False,
        css=custom_css,
    )


if __name__ == "__main__":
    main()
