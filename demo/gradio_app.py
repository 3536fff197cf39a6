"""regmachine Interactive Demo.

A Gradio web interface for running and tracing register-machine programs.

Usage:
    cd /path/to/regmachine
    pip install -e ".[demo]"
    python demo/gradio_app.py

Features:
    - Write or load assembly programs
    - Optional step limit for runaway loops
    - Step-by-step execution trace with register and flag changes
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from regmachine import Engine, MachineError, parse_program


# =============================================================================
# Example Programs
# =============================================================================

EXAMPLE_PROGRAMS = {
    "Sum 1-10": """    MOV AX, 0       ; sum = 0
    MOV BX, 1       ; counter = 1
loop:
    INC AX, BX      ; sum += counter
    INC BX          ; counter++
    CMP BX, 10
    JLE loop        ; AX = 55""",

    "Fibonacci(10)": """    MOV AX, 0       ; fib(0) - previous
    MOV BX, 1       ; fib(1) - current
loop:
    MOV CX, BX      ; temp = current
    INC BX, AX      ; current = prev + current
    MOV AX, CX      ; prev = temp
    INC DX
    CMP DX, 10
    JNE loop        ; BX = 89""",

    "Forward jump": """    MOV AX, 5
    MOV BX, 3
    CMP AX, BX
    JG skip         ; declared below
    MOV CX, 0
skip:
    MOV CX, 1       ; CX = 1""",

    "Countdown": """    MOV DX, 3
again:
    DEC DX
    CMP DX, 0
    JNE again       ; DX = 0""",

    "Custom": ""
}


# =============================================================================
# Execution Functions
# =============================================================================

def run_program(program: str, max_steps: int) -> tuple:
    """Assemble and run a program.

    Args:
        program: Assembly source code
        max_steps: Step limit (0 disables it)

    Returns:
        Tuple of (summary_text, trace_text, registers_text)
    """
    if not program.strip():
        return "Error: No program provided", "", ""

    engine = Engine(max_steps=int(max_steps) or None, trace=True)
    error_msg = None
    try:
        result = engine.execute(parse_program(program))
    except MachineError as e:
        # Assembly errors have no run to show
        if e.result is None:
            return f"Error: {e}", "", ""
        error_msg = str(e)
        result = e.result

    summary = result.get_summary()
    summary_lines = [
        "EXECUTION SUMMARY",
        "=" * 40,
        f"Cycles: {summary['cycles']}",
        f"Final PC: {summary['pc']}",
    ]
    if error_msg:
        summary_lines.append(f"\nRuntime: {error_msg}")
    summary_text = "\n".join(summary_lines)

    trace_lines = [
        "EXECUTION TRACE",
        "=" * 60,
    ]
    for entry in result.trace[:100]:  # Limit to 100 entries
        trace_lines.append(f"\n--- Cycle {entry.cycle} (PC={entry.pc}) ---")
        trace_lines.append(f"Instruction: {entry.instruction}")

        pre_regs = entry.pre_state["registers"]
        post_regs = entry.post_state["registers"]
        changes = [
            f"{reg}: {pre_regs[reg]} -> {post_regs[reg]}"
            for reg in pre_regs
            if pre_regs[reg] != post_regs[reg]
        ]
        if changes:
            trace_lines.append(f"Changes:     {', '.join(changes)}")
        if entry.pre_state["flag"] != entry.post_state["flag"]:
            trace_lines.append(f"Flag:        {entry.post_state['flag']}")

    if len(result.trace) > 100:
        trace_lines.append(f"\n... ({len(result.trace) - 100} more entries)")

    reg_lines = [
        "FINAL REGISTERS",
        "=" * 30,
    ]
    for reg, value in result.registers.items():
        marker = " *" if value != 0 else ""
        reg_lines.append(f"  {reg}: {value:>10}{marker}")
    reg_lines.append("")
    reg_lines.append(f"  FLAG: {result.flag}")

    return summary_text, "\n".join(trace_lines), "\n".join(reg_lines)


def load_example(example_name: str) -> str:
    """Load an example program."""
    return EXAMPLE_PROGRAMS.get(example_name, "")


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    with gr.Blocks(title="regmachine Demo") as demo:
        gr.Markdown("""
        # regmachine: Four-Register Machine

        Build a program from `MOV`, `CMP`, `INC`, `DEC` and label jumps,
        then run it to completion on registers `AX`, `BX`, `CX`, `DX`.
        """)

        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### Assembly Program")

                example_dropdown = gr.Dropdown(
                    choices=list(EXAMPLE_PROGRAMS.keys()),
                    value="Sum 1-10",
                    label="Load Example"
                )

                program_input = gr.Textbox(
                    value=EXAMPLE_PROGRAMS["Sum 1-10"],
                    label="Source Code",
                    lines=15,
                    placeholder="Enter assembly code here..."
                )

                max_steps = gr.Slider(
                    minimum=0,
                    maximum=100000,
                    value=10000,
                    step=100,
                    label="Max Steps (0 = unlimited)"
                )

                run_button = gr.Button("Run Program", variant="primary")

            with gr.Column(scale=3):
                with gr.Row():
                    summary_output = gr.Textbox(
                        label="Summary",
                        lines=10,
                        interactive=False
                    )
                    registers_output = gr.Textbox(
                        label="Final Registers",
                        lines=10,
                        interactive=False
                    )

                trace_output = gr.Textbox(
                    label="Execution Trace",
                    lines=20,
                    interactive=False
                )

        with gr.Accordion("ISA Reference", open=False):
            gr.Markdown("""
            | Instruction | Description | Example |
            |-------------|-------------|---------|
            | `MOV dst, src` | Copy register or immediate | `MOV AX, 42` |
            | `INC dst[, n]` | Add n (default 1) | `INC AX, BX` |
            | `DEC dst[, n]` | Subtract n (default 1) | `DEC CX` |
            | `CMP a, b` | Set flag LESS/EQUAL/GREATER | `CMP AX, 3` |
            | `JMP label` | Unconditional jump | `JMP loop` |
            | `JE/JNE/JL/JLE/JG/JGE label` | Jump on flag | `JL loop` |

            **Registers**: AX, BX, CX, DX (unbounded integers, start at 0)
            **Labels**: `name:` declares, may be referenced before declaration
            **Termination**: when the program counter leaves the program
            """)

        example_dropdown.change(
            fn=load_example,
            inputs=[example_dropdown],
            outputs=[program_input]
        )

        run_button.click(
            fn=run_program,
            inputs=[program_input, max_steps],
            outputs=[summary_output, trace_output, registers_output]
        )

    return demo


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    demo = create_demo()
    demo.launch(
        share=False,
        server_name="0.0.0.0",
        server_port=7861,
        show_error=True
    )
